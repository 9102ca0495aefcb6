"""Application entrypoint."""


def main() -> None:
    """Print how to serve the account pool.

    Returns
    -------
    None
        Prints the uvicorn command for the application.
    """
    print("Run with: uvicorn app.main:app --reload")
    print("Then bootstrap the first admin with POST /v1/bootstrap")


if __name__ == "__main__":
    main()

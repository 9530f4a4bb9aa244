import os

import uvicorn


def main():
    uvicorn.run(
        "facematch.main:app",
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "3000")),
    )


if __name__ == "__main__":
    main()

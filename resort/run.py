import os

import uvicorn


def main() -> None:
    # PORT is injected by the hosting platform
    port = int(os.environ.get("PORT", 8000))

    print(f"Starting server on port {port}...")

    uvicorn.run(
        "resort.server.main:app",
        host="0.0.0.0",
        port=port,
        proxy_headers=True,
        forwarded_allow_ips="*",
    )


if __name__ == "__main__":
    main()

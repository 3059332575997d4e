import argparse

import uvicorn

from conifer_local.main import create_app


def main() -> None:
    ap = argparse.ArgumentParser(description="Run the local Conifer control plane")
    ap.add_argument("--host", default="127.0.0.1")
    ap.add_argument("--port", type=int, default=8000)
    args = ap.parse_args()
    uvicorn.run(create_app(), host=args.host, port=args.port)


if __name__ == "__main__":
    main()

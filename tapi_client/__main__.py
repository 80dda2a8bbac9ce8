"""Entry point: python -m tapi_client"""

from tapi_client.cli import cli

if __name__ == "__main__":
    cli()

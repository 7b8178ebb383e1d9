import argparse
import asyncio
import logging
import sys

from hordegate.api.schemas import CompletionRequest
from hordegate.api.service import GatewayService
from hordegate.config.config_manager import load_config
from hordegate.errors import GatewayError
from hordegate.utils.logging_config import setup_logging


async def _run_prompt(service: GatewayService, req: CompletionRequest, api_key: str) -> str:
    try:
        resp = await service.complete(req, api_key)
    finally:
        await service.aclose()
    return resp.choices[0].text


def main():
    parser = argparse.ArgumentParser(description="hordegate: OpenAI-compatible gateway for the KoboldAI Horde")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Serve command (API server)
    serve_parser = subparsers.add_parser("serve", help="Start the OpenAI-compatible API server")
    serve_parser.add_argument("--config", type=str, default="config.yaml")

    # Prompt command (one-shot completion)
    prompt_parser = subparsers.add_parser("prompt", help="Run a single completion through the horde")
    prompt_parser.add_argument("--model", type=str, required=True)
    prompt_parser.add_argument("--prompt", type=str, required=True)
    prompt_parser.add_argument("--max-tokens", type=int, default=None)
    prompt_parser.add_argument("--api-key", type=str, default=None, help="Horde API key (anonymous if omitted)")
    prompt_parser.add_argument("--config", type=str, default="config.yaml")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return

    config = load_config(args.config)
    setup_logging(level=config.logging.level, log_dir=config.logging.log_dir)
    logger = logging.getLogger("hordegate.main")

    if args.command == "serve":
        from hordegate.api.server import start_server
        start_server(config)
        return

    if args.command == "prompt":
        service = GatewayService(config)
        req = CompletionRequest(model=args.model, prompt=args.prompt, max_tokens=args.max_tokens)
        api_key = service.api_key_from_header(args.api_key)
        try:
            text = asyncio.run(_run_prompt(service, req, api_key))
        except GatewayError as e:
            logger.error(f"Completion failed: {e}")
            sys.exit(1)
        print(text)

if __name__ == "__main__":
    main()

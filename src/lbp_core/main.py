import argparse
import logging

from lbp_core.common.settings import EngineSettings, configure_logging
from lbp_core.pool.accounting import LbpProgram
from lbp_core.webapi.webapi import create_app


logger = logging.getLogger(__name__)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Serve the liquidity bootstrapping pool API")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=5000)
    parser.add_argument("--env-file", default=None, help="Path to a .env file with LBP_* settings")
    parser.add_argument("--debug", action="store_true")
    args = parser.parse_args(argv)

    settings = EngineSettings.from_env(args.env_file)
    configure_logging(settings)

    app = create_app(LbpProgram(settings))
    logger.info("Starting LBP API on %s:%s", args.host, args.port)
    app.run(host=args.host, port=args.port, debug=args.debug)


if __name__ == "__main__":
    main()

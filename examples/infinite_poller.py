"""
Poll a configuration profile forever and print the cached object.

Reads APPCONFIG_POLLER_* settings from the environment or a .env file,
for example:

    APPCONFIG_POLLER_APPLICATION_IDENTIFIER=PollerTest
    APPCONFIG_POLLER_ENVIRONMENT_IDENTIFIER=Live
    APPCONFIG_POLLER_CONFIGURATION_PROFILE_IDENTIFIER=JsonTest
    APPCONFIG_POLLER_ENDPOINT_URL=http://localhost:4566
    APPCONFIG_POLLER_POLL_INTERVAL_SECONDS=60

Stop it with Ctrl-C.
"""
import json
import logging
import time

from dotenv import load_dotenv

from appconfig_poller import HttpConfigDataClient, Poller, PollerSettings

load_dotenv()

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("infinite_poller")


def main() -> None:
    settings = PollerSettings()
    if not settings.endpoint_url:
        raise SystemExit("APPCONFIG_POLLER_ENDPOINT_URL is not set")

    client = HttpConfigDataClient(
        settings.endpoint_url,
        timeout=settings.request_timeout_seconds,
    )
    poller = Poller.from_settings(client, settings, config_parser=json.loads)

    result = poller.start()
    if not result.is_initially_successful:
        poller.stop()
        raise SystemExit(f"Startup failed: {result.error}")

    logger.info("Connection succeeded")
    try:
        while True:
            entry = poller.get_configuration_object()
            logger.info(f"Current config entry: {entry}")
            time.sleep(5)
    except KeyboardInterrupt:
        pass
    finally:
        poller.stop()
        client.close()


if __name__ == "__main__":
    main()

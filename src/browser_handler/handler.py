"""Lambda handler for the browser automation job."""
import json
import logging

from common.config import get_config

from .station_finder import BrowserSession, run_station_finder

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def lambda_handler(event: dict, context) -> dict:
    """
    Lambda handler for the station finder.

    Args:
        event: Invocation payload (unused)
        context: Lambda context

    Returns:
        Status and number of pickup stations found
    """
    logger.info(f"Received event: {json.dumps(event)}")
    config = get_config()

    try:
        with BrowserSession(screenshots_enabled=config.screenshots_enabled) as session:
            stations = run_station_finder(session, config.browser_target_url)
    except Exception as e:
        logger.error(f"Error during browser automation: {e}", exc_info=True)
        return {
            "statusCode": 500,
            "body": json.dumps(
                {"message": "Error during browser automation", "error": str(e)}
            ),
        }

    logger.info(json.dumps([station.to_dict() for station in stations], ensure_ascii=False))
    return {
        "statusCode": 200,
        "body": json.dumps(
            {
                "message": "Browser automation completed successfully",
                "stations": len(stations),
            }
        ),
    }


# For local testing
if __name__ == "__main__":
    result = lambda_handler({}, None)
    print(json.dumps(result, ensure_ascii=False, indent=2))

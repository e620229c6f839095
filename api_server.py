"""
Flask Server for Charter Disruption Monitoring
Wires the store, weather provider and monitoring services together and
serves the JSON API.

Usage:
    python api_server.py              # start monitoring and serve the API
    python api_server.py --check-once # run one detector pass and one sweep, then exit
"""

import logging
import os
import sys

from dotenv import load_dotenv

from api.index import create_app
from app.config import AppConfig, configure_logging, get_config
from app.errors import ConfigurationError
from services import (
    AlertService,
    BackupActivator,
    DisruptionDetector,
    DisruptionMonitor,
    DutyTracker,
    OpenWeatherService,
    StaticWeatherProvider
)
from supabase_client import CharterStore, init_supabase

logger = logging.getLogger(__name__)


def build_monitor(config: AppConfig) -> DisruptionMonitor:
    """Assemble the monitoring services around one store"""
    issues = config.monitor.validate()
    if issues:
        raise ConfigurationError('monitor', reason='; '.join(issues))

    store = CharterStore(init_supabase(config.supabase))

    weather = OpenWeatherService(
        config.weather,
        config.monitor.airport_coordinates,
        fallback=StaticWeatherProvider()
    )

    tracker = DutyTracker(store, config.monitor)
    detector = DisruptionDetector(store, weather, config.monitor)
    activator = BackupActivator(store, tracker, config.monitor)
    alerts = AlertService(store)

    return DisruptionMonitor(store, tracker, detector, activator, alerts, config.monitor)


def main() -> int:
    load_dotenv()
    configure_logging(os.environ.get('LOG_LEVEL', 'INFO'))

    config = get_config()
    monitor = build_monitor(config)

    if '--check-once' in sys.argv:
        result = monitor.trigger_check()
        for name, report in result.items():
            logger.info(
                f"{name}: {report['flights_checked']} flights, "
                f"{report['alerts_created']} new alerts, {len(report['errors'])} errors"
            )
        return 0 if all(report['success'] for report in result.values()) else 1

    app = create_app(monitor, debug=config.debug)
    monitor.start()

    port = int(os.environ.get('PORT', '5000'))
    logger.info(f"Charter Disruption Monitor API starting on http://localhost:{port}")
    try:
        # Reloader would start a second monitor in the child process
        app.run(host='0.0.0.0', port=port, debug=config.debug, use_reloader=False)
    finally:
        monitor.stop()

    return 0


if __name__ == '__main__':
    sys.exit(main())

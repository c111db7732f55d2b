"""Alert delivery: webhook POST or stdout."""

import logging
import os

import requests

logger = logging.getLogger(__name__)


class WebhookNotifier:
    def __init__(self, url, timeout=10, session=None):
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    def send(self, event):
        response = self.session.post(self.url, json=event.to_payload(), timeout=self.timeout)
        response.raise_for_status()
        logger.info("Successfully sent alert for player: %s", event.participant.player_name)


class ConsoleNotifier:
    def send(self, event):
        print(event.message)


def notifier_from_env(environ=None):
    environ = os.environ if environ is None else environ
    url = environ.get('ALERT_WEBHOOK_URL')
    if url:
        return WebhookNotifier(url)
    return ConsoleNotifier()


def deliver_events(notifier, events):
    """
    Send every event; a failed delivery is logged and does not stop the rest.

    Returns the number of events delivered.
    """
    delivered = 0
    for event in events:
        try:
            notifier.send(event)
            delivered += 1
        except requests.RequestException as e:
            logger.error("Alert delivery failed for %s: %s", event.participant.player_name, e)
    return delivered

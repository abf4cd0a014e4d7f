"""
Serve the API and drive the game scheduler from the same process.

Idle sessions, arena tickets and pending offline rewards live in the
process-wide ``Game``, so the loop that advances them has to run next to the
requests that create them. The API is served from a background thread while
the main thread keeps pumping, and idle combat ticks even when no client polls.
"""
import logging
import threading
import time

from django.core.management.base import BaseCommand, CommandError
from django.core.servers.basehttp import get_internal_wsgi_application, run

from game.services import get_game

logger = logging.getLogger(__name__)


def parse_addrport(value):
    host, _, port = value.rpartition(":")
    if not port.isdigit():
        raise CommandError(f"'{value}' is not a valid port or address:port.")
    return host or "127.0.0.1", int(port)


class Command(BaseCommand):
    help = "Serve the API and keep idle combat, arena resolutions and housekeeping ticking between requests."

    def add_arguments(self, parser):
        parser.add_argument("addrport", nargs="?", default="127.0.0.1:8000", help="Port or address:port to serve on.")
        parser.add_argument("--poll", type=float, default=0.5, help="Seconds to sleep between pumps.")
        parser.add_argument("--once", action="store_true", help="Pump once and exit without serving.")

    def handle(self, *args, **options):
        game = get_game()
        if options["once"]:
            ran = game.pump()
            self.stdout.write(f"Ran {ran} scheduled tasks.")
            return

        addr, port = parse_addrport(options["addrport"])
        server = threading.Thread(
            target=run,
            args=(addr, port, get_internal_wsgi_application()),
            kwargs={"threading": True},
            name="api-server",
            daemon=True,
        )
        server.start()
        logger.info("Serving on %s:%s, game loop pumping every %ss", addr, port, options["poll"])
        try:
            while server.is_alive():
                ran = game.pump()
                if ran:
                    logger.debug("Ran %d scheduled tasks", ran)
                time.sleep(options["poll"])
        except KeyboardInterrupt:
            logger.info("Game loop stopped")
        self.stdout.write(self.style.SUCCESS("Game loop finished."))

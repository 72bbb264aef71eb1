# start.py
# Entry point for hosts that expect an HTTP port: answers "OK" on $PORT in a
# background thread, then runs the bot.
import logging
import os
import threading
from http.server import BaseHTTPRequestHandler, HTTPServer

import main

log = logging.getLogger("start")


class HealthHandler(BaseHTTPRequestHandler):
    def do_GET(self):
        self.send_response(200)
        self.end_headers()
        self.wfile.write(b"OK")

    def log_message(self, fmt, *args):
        log.debug("health: " + fmt, *args)


def run_health_server():
    port = int(os.getenv("PORT", "8080") or "8080")
    log.info("Health server listening on :%s", port)
    HTTPServer(("0.0.0.0", port), HealthHandler).serve_forever()


if __name__ == "__main__":
    threading.Thread(target=run_health_server, daemon=True).start()
    main.main()

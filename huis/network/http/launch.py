from huis import setup

setup.run()

from huis.network.http.server import server as http_server  # noqa: E402

# Booted with: uvicorn huis.network.http.launch:server
server = http_server

# This file makes sportbuzz_backend a Python package.
#
# The Flask app instance lives in app.py; import it from there
# (``from sportbuzz_backend.app import app``) or point the WSGI server at
# ``sportbuzz_backend.app:app``. Importing it here would open the database
# client and start the scheduler on any import of the analytics package.

# API blueprints. Registered on the app in app.py.

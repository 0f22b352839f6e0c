"""
Local development entry point for the care engine API.

Uses DevConfig unless APP_CONFIG is already set, then runs the Flask dev
server. Try it with:

    curl -X POST localhost:5000/api/v1/care/recommendation \
        -H "Content-Type: application/json" \
        -d '{"species": "Ocimum basilicum", "environment": "outdoor",
             "weather": {"temperature": 31, "humidity": 35}}'
"""

import os

os.environ.setdefault("APP_CONFIG", "app.config.DevConfig")

from app import create_app  # noqa: E402

app = create_app()

if __name__ == "__main__":
    app.run(host="0.0.0.0", port=int(os.getenv("PORT", 5000)), debug=os.getenv("FLASK_DEBUG", "1") == "1")

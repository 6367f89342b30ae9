#!/usr/bin/env python
"""Development server entrypoint for Habitline."""

import os

from habitline import create_app

app = create_app(os.getenv("HABITLINE_ENV", "development"))

if __name__ == "__main__":
    app.run(host="0.0.0.0", port=int(os.getenv("PORT", "8080")))

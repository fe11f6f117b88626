from __future__ import annotations

import os

from salonease import create_app
from salonease.config import Settings


def main() -> None:
    settings = Settings.from_env()
    flask_app = create_app(settings)

    # show what routes are actually mounted
    print("\n=== URL MAP ===")
    for r in sorted(flask_app.url_map.iter_rules(), key=lambda x: x.rule):
        print(r)
    print("===============\n")

    port = int(os.environ.get("PORT", 5000))
    flask_app.run(host="0.0.0.0", port=port, debug=not settings.is_production)


if __name__ == "__main__":
    main()

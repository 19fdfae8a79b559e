"""Console entry-point for the Slack bridge server.

Run with:

.. code-block:: bash

    python -m slack_bridge.webhook --port 9003

This delegates to `slack_bridge.webhook.entry.main()`.
"""

from slack_bridge.webhook.entry import main

if __name__ == "__main__":
    main()

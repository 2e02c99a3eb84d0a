"""
Command line entry points:
- console_client: interactive read/send menu (mail-console)
- send_once: send one fixed test message (mail-send-once)
- graph_cli: Microsoft Graph mail and calendar commands (mail-graph)
"""

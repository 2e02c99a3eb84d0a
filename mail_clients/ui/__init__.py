"""
Terminal output for the mail clients:
- mail_view: folder listings and outbound message summaries
- graph_view: tables for Graph messages, events and the current user
"""

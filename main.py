#!/usr/bin/env python3
"""
Main entry point for the Knowledge Assistant.

A chat assistant that answers from the user's connected Notion workspace,
Gmail inbox and HubSpot contacts.
"""

from knowledge_manager.app import KnowledgeAssistantApp


def main() -> None:
    """
    Main entry point for the Knowledge Assistant application.

    Initializes and runs the Flask web application with all components.
    """
    app_manager = KnowledgeAssistantApp()
    app_manager.run()


if __name__ == "__main__":
    main()

"""
Main application class for the Knowledge Assistant.

This module contains the KnowledgeAssistantApp class that wires storage,
connector sync, retrieval tools and the chat agent to the web interface.
"""

import logging
from typing import List, Optional

from flask import Flask

from .core.config import Config
from .core.models import PROVIDER_GOOGLE, PROVIDER_NOTION
from .data.ledger_data import SyncLedger
from .data.message_data import ChatMessageStore
from .data.oauth_data import OAuthAccountStore
from .managers.milvus_manager import MilvusManager
from .managers.postgres_manager import PostgreSQLConfig, PostgreSQLManager
from .scheduler_manager import SyncScheduler
from .utils.logger import setup_logging
from .web.routes import WebRoutes

from agent.memory import ConversationMemoryStore
from agent.orchestrator import AgentOrchestrator, build_chat_model
from ingestion.auth.token_refresher import TokenRefresher
from ingestion.email.pipeline import GmailSyncPipeline
from ingestion.notion.pipeline import NotionSyncPipeline
from ingestion.orchestrator import ConnectorSyncEngine
from ingestion.utils.embeddings import EmbeddingClient
from retrieval.crm.contacts import HubSpotContactsClient
from retrieval.document.search_manager import DocumentSearchManager
from retrieval.email.search_manager import EmailSearchManager
from retrieval.tools import RetrievalTools

logger = logging.getLogger(__name__)


class KnowledgeAssistantApp:
    """
    Main application class that wires every component from ``Config``.
    """

    def __init__(self, config: Optional[Config] = None, start_web: bool = True) -> None:
        """
        Initialize the Knowledge Assistant application.

        Args:
            config: Configuration override, defaults to environment settings
            start_web: Create the Flask app and register routes
        """
        self.config = config or Config()
        setup_logging(self.config.LOG_DIR)

        # Storage
        self.postgres_manager = PostgreSQLManager(PostgreSQLConfig.from_config(self.config))
        self.account_store = OAuthAccountStore(self.postgres_manager)
        self.ledger = SyncLedger(self.postgres_manager)
        self.message_store = ChatMessageStore(self.postgres_manager)

        self.milvus_manager = MilvusManager(self.config)
        logger.info("Initializing Milvus collections during application startup...")
        self.milvus_manager.initialize_collections_for_startup()

        self.embeddings = EmbeddingClient(self.config)
        self.token_refresher = TokenRefresher(self.config, self.account_store)

        # Connector sync
        pipeline_args = (self.config, self.ledger, self.milvus_manager, self.embeddings)
        self.sync_engine = ConnectorSyncEngine(
            self.config,
            self.account_store,
            self.ledger,
            self.milvus_manager,
            pipelines={
                PROVIDER_NOTION: NotionSyncPipeline(*pipeline_args),
                PROVIDER_GOOGLE: GmailSyncPipeline(*pipeline_args),
            },
            token_refresher=self.token_refresher,
        )
        self.scheduler = SyncScheduler(self.sync_engine, max_workers=self.config.SYNC_WORKERS)

        # Retrieval and agent
        self.document_search = DocumentSearchManager(
            self.config.NOTION_COLLECTION, self.account_store, self.milvus_manager, self.embeddings
        )
        self.email_search = EmailSearchManager(
            self.config.GMAIL_COLLECTION, self.account_store, self.milvus_manager, self.embeddings
        )
        self.contacts = HubSpotContactsClient(
            self.account_store, self.token_refresher, timeout=self.config.HTTP_TIMEOUT_SECONDS
        )
        self.memory = ConversationMemoryStore()
        self.agent = AgentOrchestrator(
            model=build_chat_model(self.config),
            memory=self.memory,
            tools_factory=self.tools_for,
            history_loader=self.message_store.list_messages,
            max_iterations=self.config.MAX_AGENT_ITERATIONS,
        )

        self.app: Optional[Flask] = None
        if start_web:
            self.app = Flask(__name__)
            self.app.config['SECRET_KEY'] = self.config.SECRET_KEY
            self.web_routes = WebRoutes(self.app, self.config, self)

        logger.info("Knowledge Assistant application initialized")

    def tools_for(self, user_id: str) -> List:
        return RetrievalTools(
            user_id, self.document_search, self.email_search, self.contacts
        ).as_langchain_tools()

    def run(self) -> None:
        """
        Run the Flask application.
        """
        logger.info(f"Starting Knowledge Assistant on {self.config.FLASK_HOST}:{self.config.FLASK_PORT}")
        try:
            self.app.run(
                host=self.config.FLASK_HOST,
                port=self.config.FLASK_PORT,
                debug=self.config.FLASK_DEBUG,
                threaded=True,
            )
        finally:
            self.scheduler.shutdown(wait=False)
            self.postgres_manager.close()

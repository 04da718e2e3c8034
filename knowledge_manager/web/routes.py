"""
Web routes module for the Knowledge Assistant.

Thin HTTP boundary over the sync engine and the chat agent. Authentication,
the OAuth code exchange and chat CRUD live in the surrounding product.
"""

import json
import logging
import queue
import threading
import uuid
from typing import Any, Dict

from flask import Flask, Response, jsonify, request

from ..core.config import Config
from ..core.models import PROVIDER_GOOGLE, PROVIDER_HUBSPOT, PROVIDER_NOTION

# Configure logging
logger = logging.getLogger(__name__)

PROVIDERS = (PROVIDER_NOTION, PROVIDER_GOOGLE, PROVIDER_HUBSPOT)
_DONE = object()


def _sse(event: str, data: Dict[str, Any]) -> str:
    return f"event: {event}\ndata: {json.dumps(data)}\n\n"


class WebRoutes:
    """
    Manages Flask routes for connection management and chat.
    """

    def __init__(self, app: Flask, config: Config, assistant: Any) -> None:
        """
        Initialize web routes.

        Args:
            app: Flask application instance
            config: Application configuration
            assistant: Application object exposing the stores, engine, scheduler and agent
        """
        self.app = app
        self.config = config
        self.assistant = assistant
        self._register_routes()
        logger.info("Web routes initialized")

    def _register_routes(self) -> None:
        """Register Flask routes."""

        @self.app.route('/api/health')
        def health():
            return jsonify({
                'milvus': self.assistant.milvus_manager.check_connection(),
                'postgres': self.assistant.postgres_manager.get_version_info(),
            })

        @self.app.route('/api/connections/<user_id>')
        def connections(user_id: str):
            connected = {a.provider for a in self.assistant.account_store.list_for_user(user_id)}
            result = {}
            for provider in PROVIDERS:
                result[provider] = {
                    'connected': provider in connected,
                    'indexed_records': self.assistant.ledger.count_for(user_id, provider)
                    if provider != PROVIDER_HUBSPOT else None,
                    'sync': self.assistant.scheduler.status(user_id, provider),
                }
            return jsonify(result)

        @self.app.route('/api/connections/<user_id>/<provider>/sync', methods=['POST'])
        def trigger_sync(user_id: str, provider: str):
            if provider not in PROVIDERS:
                return jsonify({'error': f'Unknown provider: {provider}'}), 404
            force = request.args.get('force', '').lower() in ('1', 'true', 'yes')
            self.assistant.scheduler.submit_sync(user_id, provider, force_sync=force)
            return jsonify({'status': 'queued', 'provider': provider, 'force_sync': force}), 202

        @self.app.route('/api/connections/<user_id>/<provider>', methods=['DELETE'])
        def disconnect(user_id: str, provider: str):
            if provider not in PROVIDERS:
                return jsonify({'error': f'Unknown provider: {provider}'}), 404
            try:
                self.assistant.sync_engine.disconnect(user_id, provider)
            except Exception as e:
                logger.error(f"Disconnect of {provider} for user {user_id} failed: {e}", exc_info=True)
                return jsonify({'error': str(e)}), 500
            return jsonify({'status': 'disconnected', 'provider': provider})

        @self.app.route('/api/chat', methods=['POST'])
        def chat():
            payload = request.get_json(silent=True) or {}
            user_id = payload.get('user_id')
            message = (payload.get('message') or '').strip()
            chat_id = payload.get('chat_id') or str(uuid.uuid4())
            if not user_id or not message:
                return jsonify({'error': 'user_id and message are required'}), 400
            return Response(
                self._stream_turn(user_id, chat_id, message),
                mimetype='text/event-stream',
                headers={'Cache-Control': 'no-cache', 'X-Accel-Buffering': 'no'},
            )

    def _stream_turn(self, user_id: str, chat_id: str, message: str):
        """Run a turn on a worker thread and relay its tokens as SSE events."""
        events: "queue.Queue[Any]" = queue.Queue()

        def worker():
            try:
                response = self.assistant.agent.run_turn(
                    message, user_id, chat_id, on_token=lambda t: events.put(('token', {'token': t}))
                )
                store = self.assistant.message_store
                store.ensure_chat(chat_id, user_id, title=message[:80])
                store.save_message(chat_id, message, 'user')
                store.save_message(chat_id, response.content, 'assistant', response.citations)
                events.put(('done', {
                    'chat_id': chat_id,
                    'content': response.content,
                    'citations': [c.to_dict() for c in response.citations],
                    'error': response.error,
                }))
            except Exception as e:
                logger.error(f"Chat turn failed for chat {chat_id}: {e}", exc_info=True)
                events.put(('error', {'error': 'Failed to process message'}))
            finally:
                events.put(_DONE)

        threading.Thread(target=worker, name=f"chat-{chat_id}", daemon=True).start()
        while True:
            item = events.get()
            if item is _DONE:
                break
            event, data = item
            yield _sse(event, data)

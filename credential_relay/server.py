"""
HTTP transport for the relay's JSON-RPC interface.

Each POST /rpc body is handed to a worker thread, where the dispatcher runs
the blocking ledger calls of its flow. Every JSON-RPC outcome, including
errors, is returned with HTTP status 200.
"""
import asyncio
import logging
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Optional

from aiohttp import web

from .config import RelayConfig
from .dispatcher import Dispatcher, RelayContext
from .exceptions import ConfigurationError
from .ledger import Web3LedgerClient

logger = logging.getLogger(__name__)

RPC_PATH = "/rpc"
MAX_REQUEST_SIZE = 64 * 1024

DISPATCHER_KEY = web.AppKey("dispatcher", Dispatcher)
EXECUTOR_KEY = web.AppKey("executor", Executor)


async def handle_rpc(request: web.Request) -> web.Response:
    dispatcher = request.app[DISPATCHER_KEY]
    executor = request.app[EXECUTOR_KEY]

    body = await request.read()
    loop = asyncio.get_running_loop()
    response = await loop.run_in_executor(executor, dispatcher.handle_raw, body)
    return web.json_response(response)


def create_app(dispatcher: Dispatcher, executor: Optional[Executor] = None) -> web.Application:
    """
    Build the aiohttp application

    Args:
        dispatcher: Dispatcher serving the requests
        executor: Worker pool for the blocking flows (a private
            ThreadPoolExecutor is created and shut down with the app if omitted)
    """
    app = web.Application(client_max_size=MAX_REQUEST_SIZE)
    app[DISPATCHER_KEY] = dispatcher

    if executor is None:
        owned = ThreadPoolExecutor(thread_name_prefix="relay-worker")
        app[EXECUTOR_KEY] = owned

        async def _shutdown_executor(_app: web.Application) -> None:
            owned.shutdown(wait=True)

        app.on_cleanup.append(_shutdown_executor)
    else:
        app[EXECUTOR_KEY] = executor

    app.router.add_post(RPC_PATH, handle_rpc)
    return app


def build_dispatcher(config: RelayConfig) -> Dispatcher:
    """
    Resolve the key, connect to the ledger and build the dispatcher.

    Raises:
        ConfigurationError: If the key cannot be loaded or the node serves
            a different chain
        LedgerUnavailable: If the node cannot be reached
    """
    rpc_url = config.resolved_rpc_url()
    chain_id = config.resolved_chain_id()

    account = config.key_provider().signing_key()
    ledger = Web3LedgerClient(rpc_url, timeout=config.rpc_timeout, pool_size=config.workers)

    node_chain_id = ledger.chain_id()
    if node_chain_id != chain_id:
        raise ConfigurationError(f"Node at {rpc_url} reports chain id {node_chain_id}, expected {chain_id}")
    logger.info(f"Connected to {config.network} (chain id {node_chain_id}) via {rpc_url}")

    context = RelayContext.create(
        ledger=ledger,
        account=account,
        chain_id=chain_id,
        credential_contract=config.resolved_credential_contract(),
        cache_size=config.cache_size,
        mint_gas_limit=config.mint_gas_limit,
        transfer_gas_limit=config.transfer_gas_limit,
    )
    logger.info(f"Relay signer: {account.address}")
    return Dispatcher(context)


def run_server(config: RelayConfig) -> None:
    """Serve the relay until interrupted."""
    dispatcher = build_dispatcher(config)
    executor = ThreadPoolExecutor(max_workers=config.workers, thread_name_prefix="relay-worker")
    try:
        app = create_app(dispatcher, executor)
        logger.info(f"JSON-RPC server listening on http://{config.host}:{config.port}{RPC_PATH}")
        web.run_app(app, host=config.host, port=config.port, print=None)
    finally:
        executor.shutdown(wait=True)

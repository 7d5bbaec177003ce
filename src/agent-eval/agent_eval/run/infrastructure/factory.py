"""create_run_service — builds a RunService with in-memory state and structlog events."""

from agent_eval.rubric.domain.context import MatchContext
from agent_eval.run.application.service import RunService
from agent_eval.run.domain.catalog import EvalCatalog
from agent_eval.run.domain.conversation import ConversationStore
from agent_eval.run.domain.runtime import AgentRuntime
from agent_eval.run.infrastructure.memory_store import InMemoryRunStore
from agent_eval.run.infrastructure.observer import StructlogRunObserver


def create_run_service(
    conversations: ConversationStore,
    runtime: AgentRuntime,
    catalog: EvalCatalog,
    base_url: str,
    user_id: str | None = None,
    match_context: MatchContext | None = None,
) -> RunService:
    """Build a RunService whose store and thread ledger share one InMemoryRunStore."""
    store = InMemoryRunStore()
    return RunService(
        store=store,
        ledger=store,
        conversations=conversations,
        runtime=runtime,
        catalog=catalog,
        observer=StructlogRunObserver(),
        base_url=base_url,
        user_id=user_id,
        match_context=match_context,
    )

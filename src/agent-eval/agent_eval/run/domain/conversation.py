"""ConversationStore port — the chat topics and threads executions write into."""

from typing import Protocol


class ConversationStore(Protocol):
    async def create_topics(self, titles: list[str], agent_id: str | None) -> list[str]:
        """Create one topic per title and return their ids in the same order."""
        ...

    async def delete_topics(self, topic_ids: list[str]) -> None: ...

    async def create_threads(self, topic_id: str, count: int) -> list[str]: ...

    async def last_assistant_output(
        self, topic_id: str, thread_id: str | None = None
    ) -> str | None:
        """Content of the last assistant message, or None if there is none."""
        ...

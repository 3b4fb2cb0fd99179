"""
Prompt Template Module

System instructions prepended to every conversation, and the retrieval
variant that splices retrieved documents into the instruction.

Variables in templates:
{instructions} - Base system instruction
{context} - Retrieved documents, blank-line separated
"""

from typing import Any, Dict, List, Optional

from chat_relay.core.config import settings
from chat_relay.core.logging import get_logger

logger = get_logger(__name__)


class PromptTemplate:
    """Base prompt template"""

    def __init__(self, template: str):
        """
        Initialize prompt template.

        Args:
            template: Template string with {variable} placeholders
        """
        self.template = template

    def format(self, **kwargs) -> str:
        """Format template with provided variables"""
        try:
            return self.template.format(**kwargs)
        except KeyError as e:
            logger.warning(f"Missing variable in template: {e}")
            raise


class PromptTemplates:
    """Collection of system instructions"""

    FATE = PromptTemplate(
        template="""You are FATE, an automated financial assistant.
- Keep responses concise and to the point.
- Use bullet points "-" for lists when providing recommendations.
- Use numbered steps "1., 2." for procedures.
- Always provide a 1-2 line summary first.
- End with "Next steps" if actionable items exist.
- Do NOT return long paragraphs; avoid unnecessary wording.
- Respect language rules and do not share sensitive info like SSNs or card numbers."""
    )

    ASSISTANT = PromptTemplate(
        template="You are a helpful AI assistant. Keep responses concise and friendly"
    )

    RAG = PromptTemplate(
        template="""{instructions}

Use the following context to answer the user's question. If the context does not contain the answer, say so instead of guessing.

Context:
{context}"""
    )

    BY_NAME = {
        "fate": FATE,
        "assistant": ASSISTANT,
    }


class PromptBuilder:
    """Builds the system message for a conversation"""

    def __init__(self, base_prompt: str = settings.SYSTEM_PROMPT):
        """
        Initialize prompt builder.

        Args:
            base_prompt: Name of the base instruction ('fate' or 'assistant')

        Raises:
            ValueError: If the instruction name is unknown
        """
        if base_prompt not in PromptTemplates.BY_NAME:
            raise ValueError(
                f"Unknown system prompt: {base_prompt}. "
                f"Available: {list(PromptTemplates.BY_NAME.keys())}"
            )
        self.base_prompt = base_prompt
        self.instructions = PromptTemplates.BY_NAME[base_prompt].template

    @staticmethod
    def build_context_block(context_chunks: List[Dict[str, Any]]) -> str:
        """Join retrieved document texts with a blank line, in retrieval order"""
        return "\n\n".join(chunk.get("text", "") for chunk in context_chunks)

    def build_system_prompt(self, context_chunks: Optional[List[Dict[str, Any]]] = None) -> str:
        """
        Build the system instruction.

        Args:
            context_chunks: Retrieved documents; the plain instruction is used if None

        Returns:
            System instruction text
        """
        if context_chunks is None:
            return self.instructions

        prompt = PromptTemplates.RAG.format(
            instructions=self.instructions,
            context=self.build_context_block(context_chunks)
        )
        logger.debug(f"Built system prompt with {len(context_chunks)} context documents")
        return prompt

    def compose_messages(
        self,
        messages: List[Dict[str, str]],
        context_chunks: Optional[List[Dict[str, Any]]] = None
    ) -> List[Dict[str, str]]:
        """Prepend the system message to a provider-shaped conversation"""
        system_message = {
            "role": "system",
            "content": self.build_system_prompt(context_chunks),
        }
        return [system_message, *messages]


# Global prompt builder
_prompt_builder = None


def get_prompt_builder() -> PromptBuilder:
    """Get or create prompt builder instance"""
    global _prompt_builder
    if _prompt_builder is None:
        _prompt_builder = PromptBuilder()
    return _prompt_builder

"""Cherry-pick agent using pydantic-AI with the cherry-pick tools."""

from contextlib import contextmanager

from pydantic_ai import Agent, providers

from kinetic.core.config import Config, LLMConfig
from kinetic.core.log import logger
from kinetic.tools import CherryPickDeps, cherry_pick_tools

DEFAULT_SYSTEM_PROMPT = (
    "You are a cherry-pick agent. Never create cherry-pick PRs without "
    "explicit user confirmation."
)


@contextmanager
def inject_provider_params(llm_config: LLMConfig):
    """Context manager to inject parameters into provider creation.

    Temporarily patches pydantic-AI's infer_provider to pass
    custom parameters to provider constructors. Restores original
    behavior on exit.

    Args:
        llm_config: LLM configuration with api_key, base_url, etc.

    Yields:
        None
    """
    kwargs = {}
    if llm_config.api_key:
        kwargs['api_key'] = llm_config.api_key
    if llm_config.base_url:
        kwargs['base_url'] = llm_config.base_url

    if not kwargs:
        yield
        return

    original_infer_provider = providers.infer_provider

    def patched_infer_provider(provider_name: str):
        """Infer provider and inject parameters."""
        provider_class = providers.infer_provider_class(provider_name)
        return provider_class(**kwargs)

    try:
        providers.infer_provider = patched_infer_provider
        yield
    finally:
        providers.infer_provider = original_infer_provider


class CherryPickAgent:
    """Finds merged PRs and opens cherry-pick PRs after confirmation."""

    def __init__(self, llm_config: LLMConfig, config: Config | None = None):
        """Initialize agent settings.

        Args:
            llm_config: LLM configuration (model, api_key,
                base_url, etc.)
            config: Optional configuration holding prompts and agent
                settings
        """
        self.llm_config = llm_config
        self.system_prompt = self._extract_system_prompt(config)
        self.retries = self._extract_retries(config)

    def _extract_system_prompt(self, config) -> str | None:
        if config and hasattr(config, 'prompts'):
            prompts = config.prompts
            if 'cherry_pick' in prompts and 'system' in prompts['cherry_pick']:
                return prompts['cherry_pick']['system']
        return None

    def _extract_retries(self, config) -> int:
        if config and hasattr(config, 'agents'):
            agents = config.agents
            if 'cherry_pick' in agents and 'retries' in agents['cherry_pick']:
                return agents['cherry_pick']['retries']
        return 3

    def create_agent(self) -> Agent:
        """Create the agent with the current configuration."""
        with inject_provider_params(self.llm_config):
            return Agent(
                self.llm_config.model,
                deps_type=CherryPickDeps,
                tools=cherry_pick_tools,
                system_prompt=self.system_prompt or DEFAULT_SYSTEM_PROMPT,
                retries=self.retries,
            )

    def _log_message_history(self, messages: list):
        """Log the conversation, one entry per message part."""
        logger.info(
            f"LLM conversation: {len(messages)} messages",
            message_count=len(messages),
        )
        for i, msg in enumerate(messages, 1):
            for part in getattr(msg, 'parts', []):
                part_kind = getattr(part, 'part_kind', type(part).__name__)
                if part_kind == 'tool-call':
                    logger.info(
                        f"  ToolCall: {part.tool_name}({part.args})",
                        message_index=i,
                        part_type=part_kind,
                        tool_name=part.tool_name,
                        tool_call_id=part.tool_call_id,
                    )
                elif part_kind == 'retry-prompt':
                    logger.warning(
                        f"  RetryPrompt [{part.tool_name or 'general'}]: "
                        f"{part.content}",
                        message_index=i,
                        part_type=part_kind,
                        tool_name=part.tool_name,
                    )
                else:
                    logger.debug(
                        f"  {part_kind}: {getattr(part, 'content', part)}",
                        message_index=i,
                        part_type=part_kind,
                    )

    async def run(self, user_input: str, deps: CherryPickDeps) -> str:
        """Run the agent for one user request.

        Args:
            user_input: What the user asked for
            deps: Client, settings and the run's confirmations

        Returns:
            The agent's final answer
        """
        logger.debug(
            f"Creating cherry-pick agent with model: {self.llm_config.model}",
            retries=self.retries,
            base_url=self.llm_config.base_url,
        )
        agent = self.create_agent()

        with logger.span("Cherry-pick agent", model=self.llm_config.model):
            try:
                result = await agent.run(user_input, deps=deps)
            except Exception as e:
                logger.error("Cherry-pick agent failed", _exc_info=e)
                raise
            self._log_message_history(result.all_messages())
            return result.output

DEFAULT_MAX_TOKENS = 150


class DescriptionAdaptor:
    async def describe(self, prompt: str, **kwargs) -> str:
        """Ask the model for a short tool description."""
        raise NotImplementedError

"""Student Success Concierge - bounded tool-calling agent with guardrails and tracing."""

__version__ = "0.1.0"

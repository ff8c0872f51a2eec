"""agentguard: security policy engine for autonomous coding agents."""

__version__ = "0.1.0"

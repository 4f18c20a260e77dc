from .channel import ConsoleHumanChannel, HumanChannel, Validator

__all__ = ["HumanChannel", "ConsoleHumanChannel", "Validator"]

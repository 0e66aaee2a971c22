from courier.commands.handlers import CommandHandler, command

__all__ = ["CommandHandler", "command"]

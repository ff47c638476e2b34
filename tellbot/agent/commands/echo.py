"""echo命令：复述用户说的话。"""

from tellbot.agent.commands.base import Command


class EchoCommand(Command):
    name = "echo"
    description = "repeat a message"
    arguments = "<message>"

    async def execute(self, sender_nick: str, channel: str, args: list[str]) -> str | None:
        if not args:
            return self.usage
        return f"{sender_nick} said: {' '.join(args)}"

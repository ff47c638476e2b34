"""基于asyncio流实现的IRC渠道。

此模块实现了IRC客户端连接：TLS连接、注册（PASS/NICK/USER）、
收到001欢迎消息后加入频道、PING/PONG保活、昵称冲突处理以及断线重连。
频道消息（PRIVMSG）被转换为入站事件推入消息总线。
"""

import asyncio
import ssl
from dataclasses import dataclass, field

from loguru import logger

from tellbot.bus.events import OutboundMessage
from tellbot.bus.queue import MessageBus
from tellbot.channels.base import BaseChannel
from tellbot.config.schema import IrcConfig


@dataclass
class IrcLine:
    """一行已解析的IRC协议消息。"""

    command: str
    params: list[str] = field(default_factory=list)
    prefix: str = ""  # 例如 nick!user@host 或服务器名

    @property
    def nick(self) -> str:
        """消息来源的昵称部分。"""
        return self.prefix.split("!", 1)[0]


def parse_line(line: str) -> IrcLine | None:
    """
    解析一行IRC消息（RFC 1459格式，忽略IRCv3标签）。

    Args:
        line: 不含行尾\\r\\n的原始行

    Returns:
        解析结果，空行返回None
    """
    line = line.rstrip("\r\n")
    if line.startswith("@"):
        _, _, line = line.partition(" ")
    prefix = ""
    if line.startswith(":"):
        prefix, _, line = line[1:].partition(" ")
    line = line.lstrip(" ")
    if not line:
        return None

    trailing = None
    if " :" in line:
        line, trailing = line.split(" :", 1)
    elif line.startswith(":"):
        line, trailing = "", line[1:]
    parts = line.split()
    if not parts:
        return None
    params = parts[1:]
    if trailing is not None:
        params.append(trailing)
    return IrcLine(command=parts[0].upper(), params=params, prefix=prefix)


def clip_utf8(text: str, max_bytes: int) -> str:
    """按UTF-8字节数截断文本，不会切断多字节字符。"""
    encoded = text.encode("utf-8")
    if len(encoded) <= max_bytes:
        return text
    return encoded[:max_bytes].decode("utf-8", errors="ignore")


class IrcChannel(BaseChannel):
    """
    IRC渠道。

    连接断开后会在reconnect_delay秒后自动重连。
    昵称被占用时会在末尾追加下划线重试，current_nick始终反映服务器上的实际昵称。
    """

    name = "irc"

    def __init__(self, config: IrcConfig, bus: MessageBus):
        super().__init__(config, bus)
        self.config: IrcConfig = config
        self._nick = config.nick
        self._reader: asyncio.StreamReader | None = None
        self._writer: asyncio.StreamWriter | None = None
        self._registered = False

    @property
    def current_nick(self) -> str:
        return self._nick

    def _ssl_context(self) -> ssl.SSLContext | None:
        if not self.config.use_tls:
            return None
        context = ssl.create_default_context()
        if not self.config.verify_tls:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        return context

    async def start(self) -> None:
        """
        连接IRC服务器并开始读取消息。

        这是一个长期运行的任务，直到stop()被调用。
        """
        self._running = True

        while self._running:
            try:
                logger.info(f"Connecting to {self.config.server}:{self.config.port}...")
                ssl_context = self._ssl_context()
                self._reader, self._writer = await asyncio.open_connection(
                    self.config.server,
                    self.config.port,
                    ssl=ssl_context,
                    server_hostname=self.config.server if ssl_context else None,
                )
                self._nick = self.config.nick
                self._registered = False
                await self._register()
                await self._read_loop()
            except asyncio.CancelledError:
                break
            except (OSError, ConnectionError) as e:
                logger.warning(f"IRC connection error: {e}")
            finally:
                await self._close_writer()

            if self._running:
                logger.info(f"Reconnecting to IRC in {self.config.reconnect_delay} seconds...")
                await asyncio.sleep(self.config.reconnect_delay)

    async def stop(self) -> None:
        """发送QUIT并关闭连接。"""
        self._running = False
        if self._writer and self._registered:
            try:
                await self._send_raw("QUIT :bye")
            except (OSError, ConnectionError) as e:
                logger.debug(f"QUIT failed: {e}")
        await self._close_writer()

    async def send(self, msg: OutboundMessage) -> None:
        """
        以PRIVMSG发送消息。

        多行文本拆分为多条PRIVMSG，每行按max_line_length截断。

        Args:
            msg: 要发送的出站消息
        """
        if not self._writer:
            logger.warning(f"IRC not connected, dropping message to {msg.target}")
            return

        for line in msg.content.splitlines():
            if not line.strip():
                continue
            await self._send_raw(f"PRIVMSG {msg.target} :{clip_utf8(line, self.config.max_line_length)}")

    async def _register(self) -> None:
        if self.config.password:
            await self._send_raw(f"PASS {self.config.password}")
        await self._send_raw(f"NICK {self._nick}")
        await self._send_raw(f"USER {self.config.ident} 0 * :{self.config.realname}")

    async def _read_loop(self) -> None:
        """
        逐行读取服务器消息，直到连接关闭。

        连接空闲ping_timeout秒后主动发送PING，再过ping_timeout秒仍无任何数据
        则视为连接已断开。超过读缓冲上限的行被丢弃。
        """
        assert self._reader is not None
        awaiting_pong = False
        while self._running:
            try:
                raw = await asyncio.wait_for(self._reader.readline(), timeout=self.config.ping_timeout)
            except asyncio.TimeoutError:
                if awaiting_pong:
                    raise ConnectionError(f"No data from server for {2 * self.config.ping_timeout:g} seconds")
                awaiting_pong = True
                await self._send_raw(f"PING :{self.config.server}")
                continue
            except ValueError as e:
                # StreamReader已丢弃超长的数据，连接仍可继续使用
                logger.warning(f"Dropping oversized line from IRC server: {e}")
                awaiting_pong = False
                continue

            if not raw:
                raise ConnectionError("Connection closed by server")
            awaiting_pong = False
            line = raw.decode("utf-8", errors="replace").rstrip("\r\n")
            if line:
                await self._handle_line(line)

    async def _handle_line(self, line: str) -> None:
        """
        处理一行服务器消息。

        Args:
            line: 原始行
        """
        msg = parse_line(line)
        if msg is None:
            return

        if msg.command == "PING":
            token = msg.params[-1] if msg.params else ""
            await self._send_raw(f"PONG :{token}")

        elif msg.command == "001":
            # 欢迎消息的第一个参数就是服务器确认的昵称
            if msg.params:
                self._nick = msg.params[0]
            self._registered = True
            logger.info(f"Registered on {self.config.server} as {self._nick}")
            for channel in self.config.channels:
                await self._send_raw(f"JOIN {channel}")

        elif msg.command == "433":
            self._nick = f"{self._nick}_"
            logger.warning(f"Nickname in use, trying {self._nick}")
            await self._send_raw(f"NICK {self._nick}")

        elif msg.command == "NICK" and msg.nick.lower() == self._nick.lower() and msg.params:
            self._nick = msg.params[0]
            logger.info(f"Nickname changed to {self._nick}")

        elif msg.command == "JOIN" and msg.nick.lower() == self._nick.lower() and msg.params:
            logger.info(f"Joined {msg.params[0]}")

        elif msg.command == "PRIVMSG" and len(msg.params) >= 2 and msg.prefix:
            await self._handle_message(
                sender_nick=msg.nick,
                target=msg.params[0],
                content=msg.params[1],
                metadata={"prefix": msg.prefix},
            )

    async def _send_raw(self, line: str) -> None:
        if not self._writer:
            return
        self._writer.write(f"{line}\r\n".encode("utf-8"))
        await self._writer.drain()

    async def _close_writer(self) -> None:
        writer, self._writer, self._reader = self._writer, None, None
        if writer is None:
            return
        writer.close()
        try:
            await writer.wait_closed()
        except OSError as e:
            logger.debug(f"Error closing IRC connection: {e}")

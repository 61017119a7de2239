import asyncio
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Set
from loguru import logger
from dbmirror.errors import BlobTimeoutError

CHUNK_SIZE = 64 * 1024

def _decode(data: Any) -> str:
    if isinstance(data, str):
        return data
    return bytes(data).decode("utf-8")

def _read_handle(handle: Any) -> str:
    """在工作线程中按块读取延迟句柄，读完后关闭"""
    chunks = []
    try:
        while True:
            chunk = handle.read(CHUNK_SIZE)
            if not chunk:
                break
            chunks.append(chunk)
    finally:
        close = getattr(handle, "close", None)
        if callable(close):
            close()
    if chunks and isinstance(chunks[0], str):
        return "".join(chunks)
    return b"".join(bytes(c) for c in chunks).decode("utf-8")

CancelHook = Callable[[], Awaitable[None]]

class BlobResolver:
    """
    按行解析文本BLOB的延迟句柄，出错或超时写入None

    超时的读取仍在工作线程中运行，会被记录下来：下一次读取前先取消并等待它，
    游标关闭前必须调用drain()，保证同一连接上不会有并发的驱动调用。
    """

    def __init__(self, timeout: float = 5.0, cancel: Optional[CancelHook] = None):
        self.timeout = timeout
        self._cancel = cancel
        self._pending: Set[asyncio.Future] = set()

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def resolve(self, handle: Any) -> Optional[str]:
        """
        将文本BLOB的延迟句柄解析为字符串

        Args:
            handle: 驱动返回的句柄（带read方法），或已物化的值

        Returns:
            UTF-8解码后的文本；出错或超时返回None，不抛出异常
        """
        if handle is None:
            return None
        try:
            if isinstance(handle, (str, bytes, bytearray, memoryview)):
                return _decode(handle)
            if self._pending and not await self._settle(self.timeout):
                raise BlobTimeoutError("previous BLOB read is still running")
            return await self._read(handle)
        except BlobTimeoutError as e:
            logger.warning(f"{str(e)}, storing NULL")
            return None
        except Exception as e:
            logger.warning(f"Failed to read BLOB, storing NULL: {str(e)}")
            return None

    async def resolve_row(self, row: List[Any], positions: Sequence[int]) -> List[Any]:
        """就地解析一行中指定位置的文本BLOB"""
        for position in positions:
            row[position] = await self.resolve(row[position])
        return row

    async def drain(self) -> None:
        """取消并等待所有超时的读取结束"""
        if not self._pending:
            return
        logger.debug(f"Waiting for {len(self._pending)} abandoned BLOB read(s)")
        await self._cancel_operation()
        await asyncio.gather(*self._pending, return_exceptions=True)
        self._pending.clear()

    async def _read(self, handle: Any) -> str:
        task = asyncio.ensure_future(asyncio.to_thread(_read_handle, handle))
        done, _ = await asyncio.wait({task}, timeout=self.timeout)
        if task not in done:
            self._pending.add(task)
            raise BlobTimeoutError(f"BLOB not resolved within {self.timeout}s")
        return task.result()

    async def _settle(self, timeout: float) -> bool:
        await self._cancel_operation()
        done, _ = await asyncio.wait(self._pending, timeout=timeout)
        for task in done:
            self._pending.discard(task)
            # 取走异常，避免未检索的异常警告
            task.exception()
        return not self._pending

    async def _cancel_operation(self) -> None:
        if self._cancel is None:
            return
        try:
            await self._cancel()
        except Exception as e:
            logger.warning(f"Failed to cancel BLOB read: {str(e)}")

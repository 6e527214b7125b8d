"""
AVR109 programming session as a pure state machine.

The machine never touches a serial port. ``start()`` and ``step()`` return a
new snapshot plus a list of effects (send bytes, wait, report progress,
finish) that a driver executes; the driver feeds back one event per command
(a response arrived, or the command's timeout expired).

Session Flow
------------

::

    IDENTIFY ('S') -> GET_PROGRAMMER ('t') -> PROGRAMMING ('P') -> ERASE ('e')
        -> ADDRESS ('A' page 1) -> WRITE_DATA ('B' ... loops over pages 1..n)
        -> FIRST_PAGE_ADDRESS ('A' 0) -> WRITE_FIRST_PAGE ('B' page 0)
        -> EXIT ('E', not acknowledged, terminal)

Page 0 holds the reset vector the bootloader jumps through, so it is written
last: an interrupted update leaves the previous page 0 in place and the
device can still enter the bootloader.

The bootloader auto-increments its address after every block write, so
consecutive pages need only one ADDRESS command.

Timeouts and Retries
--------------------

Each command has a timeout (handshake/address 1s, page write 2s, erase 10s).
A timeout resends the same command up to ``max_retries`` times; after that
the session skips forward instead of failing (see ``_degrade``). Many AVR109
bootloaders do not acknowledge every command, so a silent handshake step
is tolerated at the price of possibly flashing over a bad link.
"""

from dataclasses import dataclass, replace
from enum import Enum

from timepod.exceptions import FirmwareImageError
from timepod.models.config import UploadSettings


class UploadState(str, Enum):
    """Steps of an upload session."""

    IDENTIFY = "identify"
    GET_PROGRAMMER = "get_programmer"
    PROGRAMMING = "programming"
    ERASE = "erase"
    ADDRESS = "address"
    WRITE_DATA = "write_data"
    FIRST_PAGE_ADDRESS = "first_page_address"
    WRITE_FIRST_PAGE = "write_first_page"
    EXIT = "exit"


class UploadEvent(str, Enum):
    """What happened to the last command."""

    RESPONSE = "response"
    TIMEOUT = "timeout"


# AVR109 command bytes
CMD_READ_IDENTIFIER = b"S"
CMD_READ_PART_CODE = b"t"
CMD_ENTER_PROGRAMMING = b"P"
CMD_ERASE = b"e"
CMD_SET_ADDRESS = b"A"
CMD_BLOCK_WRITE = b"B"
CMD_EXIT = b"E"
MEMORY_TYPE_FLASH = b"F"


@dataclass(frozen=True)
class Send:
    """Write ``data``; wait up to ``timeout`` seconds for a reply (None = don't wait)."""

    data: bytes
    timeout: float | None


@dataclass(frozen=True)
class Delay:
    seconds: float


@dataclass(frozen=True)
class ReportProgress:
    fraction: float


@dataclass(frozen=True)
class Finish:
    """The session completed successfully."""
    pass


Effect = Send | Delay | ReportProgress | Finish


@dataclass(frozen=True)
class UploadSnapshot:
    """Immutable state of one session between events."""

    state: UploadState
    address: int
    retries: int = 0
    processed_bytes: int = 0
    erase_abandoned: bool = False


def address_command(address: int) -> bytes:
    """
    Set-address command for a byte address.

    The bootloader takes word addresses, high byte first.

    Example:
        >>> address_command(256)
        b'A\\x00\\x80'
    """
    return CMD_SET_ADDRESS + bytes([(address >> 9) & 0xFF, (address >> 1) & 0xFF])


def block_write_command(data: bytes) -> bytes:
    """Block-write header (length high, length low, memory type) followed by the data."""
    length = len(data)
    return CMD_BLOCK_WRITE + bytes([(length >> 8) & 0xFF, length & 0xFF]) + MEMORY_TYPE_FLASH + data


class Avr109Machine:
    """
    Transition function for flashing one firmware image.

    Example:
        ```python
        machine = Avr109Machine(image)
        snapshot, effects = machine.start()
        # ... execute effects, then for every response or timeout:
        snapshot, effects = machine.step(snapshot, UploadEvent.RESPONSE)
        ```
    """

    def __init__(self, image: bytes, settings: UploadSettings | None = None):
        """
        Initialize the machine.

        Args:
            image: Complete firmware image
            settings: Page size, timeouts and retry limit

        Raises:
            FirmwareImageError: If the image is empty
        """
        if not image:
            raise FirmwareImageError("Firmware image is empty")
        self.image = bytes(image)
        self.settings = settings or UploadSettings()

    @property
    def total_bytes(self) -> int:
        return len(self.image)

    @property
    def page_size(self) -> int:
        return self.settings.page_size

    def progress(self, snapshot: UploadSnapshot) -> float:
        """Fraction of the image processed, clamped to 1.0."""
        return min(1.0, snapshot.processed_bytes / self.total_bytes)

    # ------------------------------------------------------------------
    # Public transition function
    # ------------------------------------------------------------------

    def start(self) -> tuple[UploadSnapshot, list[Effect]]:
        """First snapshot and the IDENTIFY command. Writing starts at page 1."""
        snapshot = UploadSnapshot(state=UploadState.IDENTIFY, address=self.page_size)
        return snapshot, [self.command_for(snapshot)]

    def step(self, snapshot: UploadSnapshot, event: UploadEvent) -> tuple[UploadSnapshot, list[Effect]]:
        """
        Advance the session by one event.

        Args:
            snapshot: Current snapshot
            event: Outcome of the command sent for ``snapshot``

        Returns:
            (next snapshot, effects to execute in order)
        """
        if snapshot.state is UploadState.EXIT:
            return snapshot, []
        if event is UploadEvent.RESPONSE:
            return self._on_response(snapshot)
        return self._on_timeout(snapshot)

    def command_for(self, snapshot: UploadSnapshot) -> Send:
        """The command (and its timeout) that belongs to the snapshot's state."""
        state = snapshot.state
        timeouts = self.settings

        if state is UploadState.IDENTIFY:
            return Send(CMD_READ_IDENTIFIER, timeouts.handshake_timeout)
        if state is UploadState.GET_PROGRAMMER:
            return Send(CMD_READ_PART_CODE, timeouts.handshake_timeout)
        if state is UploadState.PROGRAMMING:
            return Send(CMD_ENTER_PROGRAMMING, timeouts.handshake_timeout)
        if state is UploadState.ERASE:
            return Send(CMD_ERASE, timeouts.erase_timeout)
        if state is UploadState.ADDRESS:
            return Send(address_command(snapshot.address), timeouts.handshake_timeout)
        if state is UploadState.WRITE_DATA:
            return Send(block_write_command(self._page_at(snapshot.address)), timeouts.write_timeout)
        if state is UploadState.FIRST_PAGE_ADDRESS:
            return Send(address_command(0), timeouts.handshake_timeout)
        if state is UploadState.WRITE_FIRST_PAGE:
            return Send(block_write_command(self._page_at(0)), timeouts.write_timeout)
        raise ValueError(f"No command for state {state.value}")

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _on_response(self, snapshot: UploadSnapshot) -> tuple[UploadSnapshot, list[Effect]]:
        state = snapshot.state

        if state is UploadState.IDENTIFY:
            return self._enter(snapshot, UploadState.GET_PROGRAMMER)
        if state is UploadState.GET_PROGRAMMER:
            return self._enter(snapshot, UploadState.PROGRAMMING)
        if state is UploadState.PROGRAMMING:
            if snapshot.erase_abandoned:
                return self._begin_pages(snapshot)
            return self._enter(snapshot, UploadState.ERASE)
        if state is UploadState.ERASE:
            return self._begin_pages(snapshot)
        if state is UploadState.ADDRESS:
            return self._enter(snapshot, UploadState.WRITE_DATA)
        if state is UploadState.WRITE_DATA:
            return self._page_done(snapshot, resync=False)
        if state is UploadState.FIRST_PAGE_ADDRESS:
            return self._enter(snapshot, UploadState.WRITE_FIRST_PAGE)
        if state is UploadState.WRITE_FIRST_PAGE:
            return self._first_page_done(snapshot)
        return snapshot, []

    def _on_timeout(self, snapshot: UploadSnapshot) -> tuple[UploadSnapshot, list[Effect]]:
        retries = snapshot.retries + 1
        if retries <= self.settings.max_retries:
            retry = replace(snapshot, retries=retries)
            return retry, [self.command_for(retry)]
        return self._degrade(snapshot)

    def _degrade(self, snapshot: UploadSnapshot) -> tuple[UploadSnapshot, list[Effect]]:
        """Skip an unresponsive step once its retries are exhausted."""
        state = snapshot.state

        if state in (UploadState.IDENTIFY, UploadState.GET_PROGRAMMER):
            return self._enter(snapshot, UploadState.PROGRAMMING)
        if state is UploadState.PROGRAMMING:
            return self._begin_pages(snapshot)
        if state is UploadState.ERASE:
            # Back to PROGRAMMING once; erase is not attempted again
            return self._enter(replace(snapshot, erase_abandoned=True), UploadState.PROGRAMMING)
        if state is UploadState.ADDRESS:
            return self._enter(snapshot, UploadState.WRITE_DATA)
        if state is UploadState.WRITE_DATA:
            return self._page_done(snapshot, resync=True)
        if state is UploadState.FIRST_PAGE_ADDRESS:
            return self._enter(snapshot, UploadState.WRITE_FIRST_PAGE)
        if state is UploadState.WRITE_FIRST_PAGE:
            return self._exit(snapshot)
        return snapshot, []

    def _enter(self, snapshot: UploadSnapshot, state: UploadState) -> tuple[UploadSnapshot, list[Effect]]:
        if state is UploadState.EXIT:
            return self._exit(snapshot)
        if state is UploadState.WRITE_DATA and snapshot.address >= self.total_bytes:
            state = UploadState.FIRST_PAGE_ADDRESS
        entered = replace(snapshot, state=state, retries=0)
        return entered, [self.command_for(entered)]

    def _begin_pages(self, snapshot: UploadSnapshot) -> tuple[UploadSnapshot, list[Effect]]:
        if snapshot.address < self.total_bytes:
            return self._enter(snapshot, UploadState.ADDRESS)
        return self._enter(snapshot, UploadState.FIRST_PAGE_ADDRESS)

    def _page_done(self, snapshot: UploadSnapshot, resync: bool) -> tuple[UploadSnapshot, list[Effect]]:
        """
        Account for the page at ``snapshot.address`` (written or skipped).

        A skipped page leaves the bootloader's address pointer where it was,
        so the next page is preceded by an ADDRESS command.
        """
        written = len(self._page_at(snapshot.address))
        advanced = replace(
            snapshot,
            address=snapshot.address + self.page_size,
            processed_bytes=snapshot.processed_bytes + written,
        )
        effects: list[Effect] = [ReportProgress(self.progress(advanced))]

        if advanced.address >= self.total_bytes:
            nxt, more = self._enter(advanced, UploadState.FIRST_PAGE_ADDRESS)
        elif resync:
            nxt, more = self._enter(advanced, UploadState.ADDRESS)
        else:
            nxt, more = self._enter(advanced, UploadState.WRITE_DATA)
        return nxt, effects + more

    def _first_page_done(self, snapshot: UploadSnapshot) -> tuple[UploadSnapshot, list[Effect]]:
        written = len(self._page_at(0))
        advanced = replace(snapshot, processed_bytes=snapshot.processed_bytes + written)
        nxt, effects = self._exit(advanced)
        return nxt, [ReportProgress(self.progress(advanced)), *effects]

    def _exit(self, snapshot: UploadSnapshot) -> tuple[UploadSnapshot, list[Effect]]:
        finished = replace(snapshot, state=UploadState.EXIT, retries=0)
        return finished, [
            Delay(self.settings.exit_delay),
            Send(CMD_EXIT, None),
            ReportProgress(1.0),
            Finish(),
        ]

    def _page_at(self, address: int) -> bytes:
        return self.image[address:address + self.page_size]

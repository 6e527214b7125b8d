"""Editing intents for the controller's configuration."""

import logging
import threading
from collections.abc import Iterable

from timepod.models.device import Bank, DeviceState, KnobState, lsb_for
from timepod.protocol.messages import (
    NUM_KNOBS,
    BankColor,
    BankSnapshotColor,
    Brightness,
    CcType,
    ConfigMessage,
    DisplayMode,
    KnobCcType,
    KnobColor,
    KnobMidiCc1,
    KnobMidiCc2,
    KnobMidiChannel,
    KnobType,
    Sync,
)

from .configuration import ConfigurationService

logger = logging.getLogger(__name__)


class DeviceEditor:
    """
    Turns user intents into configuration messages.

    Every intent builds all of its messages first (so a range error raises
    ``pydantic.ValidationError`` before anything is sent), then sends them in
    order and applies them to the local ``DeviceState``. Messages reported by
    the device are applied to the same state, so both directions share one
    reconciliation path.

    Threading:
        Intents may be called from any thread; device reports arrive on
        mido's I/O thread. ``_lock`` serialises state updates.
    """

    def __init__(self, configuration: ConfigurationService, state: DeviceState | None = None):
        """
        Initialize the editor.

        Args:
            configuration: Service used to send messages
            state: State to edit (a default-initialised one if None)
        """
        self._configuration = configuration
        self.state = state or DeviceState()
        self._lock = threading.RLock()
        self._unsubscribe = configuration.dispatcher.subscribe_all(self._on_device_message)
        logger.info("DeviceEditor initialized")

    def close(self) -> None:
        """Stop following device reports."""
        self._unsubscribe()

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    def _on_device_message(self, message: ConfigMessage) -> None:
        with self._lock:
            self.state.apply(message)

    def _send(self, messages: list[ConfigMessage]) -> list[ConfigMessage]:
        for message in messages:
            if not self._configuration.send_config(message):
                logger.debug(f"{message.message_type.name} not sent (no output), state updated locally")
            with self._lock:
                self.state.apply(message)
        return messages

    def _knob(self, bank: int, knob: int) -> KnobState:
        return self.state.get_knob(bank, knob)

    @staticmethod
    def _knob_color_messages(bank: int, knob: int, colors: list[int], single: bool) -> list[ConfigMessage]:
        if single:
            return [KnobColor.for_all_snapshots(bank=bank, knob=knob, color=colors[0])]
        return [
            KnobColor(bank=bank, snapshot=snapshot, knob=knob, color=color)
            for snapshot, color in enumerate(colors)
        ]

    @staticmethod
    def _snapshot_color_messages(bank: int, colors: list[int], single: bool) -> list[ConfigMessage]:
        if single:
            return [BankSnapshotColor.for_all_snapshots(bank=bank, color=colors[0])]
        return [
            BankSnapshotColor(bank=bank, snapshot=snapshot, color=color)
            for snapshot, color in enumerate(colors)
        ]

    # ------------------------------------------------------------------
    # Knob intents
    # ------------------------------------------------------------------

    def set_knob_color(self, bank: int, knob: int, color: int, snapshot: int | None = None) -> list[ConfigMessage]:
        """
        Set a knob's color.

        A single-color knob is updated in all snapshots at once; otherwise
        only ``snapshot`` changes.

        Raises:
            ValueError: If the knob has per-snapshot colors and no snapshot is given
        """
        if self._knob(bank, knob).use_single_color:
            message = KnobColor.for_all_snapshots(bank=bank, knob=knob, color=color)
        else:
            if snapshot is None:
                raise ValueError(f"Knob {knob} in bank {bank} has per-snapshot colors; a snapshot is required")
            message = KnobColor(bank=bank, snapshot=snapshot, knob=knob, color=color)
        return self._send([message])

    def set_use_single_color(self, bank: int, knob: int, enabled: bool) -> list[ConfigMessage]:
        """
        Switch a knob between one color and per-snapshot colors.

        Enabling sends the snapshot-0 color to all snapshots. Disabling
        re-sends every slot, unless they all match (nothing to send then).
        """
        state = self._knob(bank, knob)
        colors = list(state.color_indices)

        if enabled:
            return self._send(self._knob_color_messages(bank, knob, colors, single=True))

        with self._lock:
            state.use_single_color = False
        if all(color == colors[0] for color in colors):
            return []
        return self._send(self._knob_color_messages(bank, knob, colors, single=False))

    def set_display_mode(self, bank: int, knob: int, display_mode: DisplayMode | str) -> list[ConfigMessage]:
        return self._send([KnobType(bank=bank, knob=knob, display_mode=DisplayMode(display_mode))])

    def set_cc_type(self, bank: int, knob: int, cc_type: CcType | str) -> list[ConfigMessage]:
        """Set the CC resolution; 14-bit standard also moves the LSB controller to cc + 32."""
        cc_type = CcType(cc_type)
        messages: list[ConfigMessage] = [KnobCcType(bank=bank, knob=knob, cc_type=cc_type)]
        if cc_type is CcType.STANDARD_14:
            messages.append(KnobMidiCc2(bank=bank, knob=knob, cc=lsb_for(self._knob(bank, knob).cc)))
        return self._send(messages)

    def set_channel(self, bank: int, knob: int, channel: int) -> list[ConfigMessage]:
        return self._send([KnobMidiChannel(bank=bank, knob=knob, channel=channel)])

    def set_cc(self, bank: int, knob: int, cc: int) -> list[ConfigMessage]:
        """Set the controller number (keeps the 14-bit LSB at cc + 32)."""
        messages: list[ConfigMessage] = [KnobMidiCc1(bank=bank, knob=knob, cc=cc)]
        if self._knob(bank, knob).cc_type is CcType.STANDARD_14:
            messages.append(KnobMidiCc2(bank=bank, knob=knob, cc=lsb_for(cc)))
        return self._send(messages)

    def set_cc_lsb(self, bank: int, knob: int, cc: int) -> list[ConfigMessage]:
        return self._send([KnobMidiCc2(bank=bank, knob=knob, cc=cc)])

    # ------------------------------------------------------------------
    # Bank intents
    # ------------------------------------------------------------------

    def set_bank_color(self, bank: int, color: int) -> list[ConfigMessage]:
        return self._send([BankColor(bank=bank, color=color)])

    def set_snapshot_color(self, bank: int, snapshot: int, color: int) -> list[ConfigMessage]:
        """Set a snapshot button color (all of them if the bank uses one color)."""
        if self.state.get_bank(bank).use_single_snapshot_color:
            message = BankSnapshotColor.for_all_snapshots(bank=bank, color=color)
        else:
            message = BankSnapshotColor(bank=bank, snapshot=snapshot, color=color)
        return self._send([message])

    def set_use_single_snapshot_color(self, bank: int, enabled: bool) -> list[ConfigMessage]:
        """Same rules as ``set_use_single_color``, for snapshot buttons."""
        bank_state = self.state.get_bank(bank)
        colors = bank_state.snapshot_colors

        if enabled:
            return self._send(self._snapshot_color_messages(bank, colors, single=True))

        with self._lock:
            bank_state.use_single_snapshot_color = False
        if all(color == colors[0] for color in colors):
            return []
        return self._send(self._snapshot_color_messages(bank, colors, single=False))

    # ------------------------------------------------------------------
    # Global intents
    # ------------------------------------------------------------------

    def set_brightness(self, value: int) -> list[ConfigMessage]:
        return self._send([Brightness(value=value)])

    def request_sync(self) -> list[ConfigMessage]:
        """Ask the device for a full state dump."""
        return self._send([Sync()])

    # ------------------------------------------------------------------
    # Copy
    # ------------------------------------------------------------------

    def copy_knob_colors(self, bank: int, source: int, targets: Iterable[int]) -> list[ConfigMessage]:
        """Copy one knob's colors (and single-color mode) to other knobs of the same bank."""
        source_state = self._knob(bank, source)
        colors = list(source_state.color_indices)
        messages: list[ConfigMessage] = []
        for target in targets:
            messages.extend(
                self._knob_color_messages(bank, target, colors, single=source_state.use_single_color)
            )
        return self._send(messages)

    def copy_bank(self, source: int, targets: Iterable[int]) -> list[ConfigMessage]:
        """
        Copy every setting of a bank to other banks.

        Per target bank the sequence is: bank color, then for each knob its
        colors, channel, CC, LSB controller (14-bit/NRPN only), CC type and
        display mode, then the snapshot button colors.
        """
        with self._lock:
            source_bank: Bank = self.state.get_bank(source).model_copy(deep=True)

        messages: list[ConfigMessage] = []
        for target in targets:
            messages.extend(self._bank_messages(source_bank, target))
        return self._send(messages)

    def _bank_messages(self, source: Bank, target: int) -> list[ConfigMessage]:
        messages: list[ConfigMessage] = [BankColor(bank=target, color=source.color)]

        for knob in range(NUM_KNOBS):
            state = source.knobs[knob]
            messages.extend(
                self._knob_color_messages(target, knob, state.color_indices, single=state.use_single_color)
            )
            messages.append(KnobMidiChannel(bank=target, knob=knob, channel=state.channel))
            messages.append(KnobMidiCc1(bank=target, knob=knob, cc=state.cc))
            if state.cc_type is not CcType.STANDARD_7:
                messages.append(KnobMidiCc2(bank=target, knob=knob, cc=state.cc_lsb))
            messages.append(KnobCcType(bank=target, knob=knob, cc_type=state.cc_type))
            messages.append(KnobType(bank=target, knob=knob, display_mode=state.display_mode))

        messages.extend(
            self._snapshot_color_messages(
                target, source.snapshot_colors, single=source.use_single_snapshot_color
            )
        )
        return messages

"""
Memory, loader, config and logging tests.
"""

import logging

import pytest

from z16sim.config import SimConfig
from z16sim.errors import AddressingFault, LoaderFault, UnterminatedString
from z16sim.loader import load_image, read_image
from z16sim.log_setup import setup_logging, LOGGER_NAME
from z16sim.mem.memory import Memory, MEM_SIZE, wrap


# ─── Memory access ─────────────────────

class TestMemory:
    def test_default_capacity(self):
        mem = Memory()
        assert len(mem) == MEM_SIZE == 0x10000

    def test_rejects_bad_capacity(self):
        with pytest.raises(ValueError):
            Memory(1)
        with pytest.raises(ValueError):
            Memory(0x10001)

    def test_word_is_little_endian(self):
        mem = Memory()
        mem.write16(0x0200, 0xBEEF)
        assert mem.read8(0x0200) == 0xEF
        assert mem.read8(0x0201) == 0xBE
        assert mem.read16(0x0200) == 0xBEEF
        assert mem.fetch16(0x0200) == 0xBEEF

    def test_write_masks_value(self):
        mem = Memory()
        mem.write8(0, 0x1FF)
        mem.write16(2, 0x12345)
        assert mem.read8(0) == 0xFF
        assert mem.read16(2) == 0x2345

    def test_last_byte_is_addressable(self):
        mem = Memory()
        mem.write8(0xFFFF, 0x5A)
        assert mem.read8(0xFFFF) == 0x5A

    def test_word_at_last_byte_faults(self):
        mem = Memory()
        with pytest.raises(AddressingFault) as exc:
            mem.read16(0xFFFF)
        assert exc.value.address == 0xFFFF
        assert exc.value.size == 2
        assert exc.value.pc is None

    def test_small_memory_bounds(self):
        mem = Memory(0x100)
        mem.write16(0xFE, 1)
        with pytest.raises(AddressingFault):
            mem.write8(0x100, 0)
        with pytest.raises(AddressingFault):
            mem.read16(0xFF)

    def test_wrap(self):
        assert wrap(0xFFFF + 1) == 0
        assert wrap(-1) == 0xFFFF
        assert wrap(0x1234) == 0x1234

    def test_fault_message_names_instruction(self):
        fault = AddressingFault(0xFFFF, 2).at(0x0010)
        assert fault.pc == 0x0010
        assert str(fault) == "2-byte access at 0xFFFF out of range (instruction at 0x0010)"


# ─── C strings ─────────────────────

class TestCString:
    def test_reads_up_to_nul(self):
        mem = Memory()
        mem.load_binary(b"hello\x00world\x00", 0x40)
        assert mem.read_cstring(0x40) == b"hello"
        assert mem.read_cstring(0x46) == b"world"

    def test_empty_string(self):
        mem = Memory()
        assert mem.read_cstring(0x1000) == b""

    def test_unterminated(self):
        mem = Memory(0x20)
        mem.load_binary(b"x" * 8, 0x18)
        with pytest.raises(UnterminatedString) as exc:
            mem.read_cstring(0x18)
        assert isinstance(exc.value, AddressingFault)
        assert "no NUL terminator" in str(exc.value)

    def test_start_outside_memory(self):
        mem = Memory(0x20)
        with pytest.raises(AddressingFault):
            mem.read_cstring(0x20)


# ─── Bulk load / hex dump ─────────────────────

class TestLoadAndInspect:
    def test_load_returns_count(self):
        mem = Memory()
        assert mem.load_binary(b"\x39\x0A\xC7\x00") == 4
        assert mem.read16(0) == 0x0A39

    def test_oversized_image_is_truncated(self, caplog):
        mem = Memory(0x10)
        with caplog.at_level(logging.WARNING):
            count = mem.load_binary(bytes(range(0x20)))
        assert count == 0x10
        assert mem.read8(0x0F) == 0x0F
        assert "truncating" in caplog.text

    def test_load_base_outside_memory(self):
        mem = Memory(0x10)
        with pytest.raises(AddressingFault):
            mem.load_binary(b"\x00", 0x10)

    def test_hexdump(self):
        mem = Memory()
        mem.load_binary(b"hi\x00", 0x20)
        dump = mem.hexdump(0x20, 16)
        assert dump.startswith("0020  68 69 00 00")
        assert dump.endswith("hi..............")

    def test_hexdump_stops_at_capacity(self):
        mem = Memory(0x18)
        lines = mem.hexdump(0, 256).splitlines()
        assert len(lines) == 2
        assert lines[1].startswith("0010  00 00 00 00 00 00 00 00 ")


# ─── Loader ─────────────────────

class TestLoader:
    def test_load_image(self, tmp_path):
        path = tmp_path / "prog.bin"
        path.write_bytes(b"\x39\x0A\xC7\x00")
        mem = Memory()
        assert load_image(mem, path) == 4
        assert mem.read16(2) == 0x00C7

    def test_missing_file(self, tmp_path):
        with pytest.raises(LoaderFault) as exc:
            read_image(tmp_path / "nope.bin")
        assert "file not found" in str(exc.value)
        assert exc.value.path.name == "nope.bin"

    def test_directory(self, tmp_path):
        with pytest.raises(LoaderFault) as exc:
            read_image(tmp_path)
        assert exc.value.reason == "is a directory"

    def test_empty_image(self, tmp_path):
        path = tmp_path / "empty.bin"
        path.write_bytes(b"")
        assert load_image(Memory(), path) == 0


# ─── Config / logging ─────────────────────

class TestConfig:
    def test_defaults(self):
        cfg = SimConfig()
        assert cfg.mem_size == MEM_SIZE
        assert cfg.max_steps is None
        assert cfg.on_unimplemented == "continue"
        assert cfg.trace is True

    def test_bad_policy(self):
        with pytest.raises(ValueError):
            SimConfig(on_unimplemented="ignore")

    def test_negative_step_limit(self):
        with pytest.raises(ValueError):
            SimConfig(max_steps=-1)


class TestLogging:
    def test_repeat_setup_does_not_stack_handlers(self):
        setup_logging()
        logger = setup_logging()
        assert logger.name == LOGGER_NAME
        assert len(logger.handlers) == 1
        assert logger.propagate is False

    def test_log_file_gets_debug(self, tmp_path):
        log_file = tmp_path / "logs" / "run.log"
        logger = setup_logging(level=logging.WARNING, log_file=log_file,
                               rich_console=False)
        assert len(logger.handlers) == 2
        logging.getLogger("z16sim.emu").debug("step detail")
        for handler in logger.handlers:
            handler.flush()
        text = log_file.read_text(encoding="utf-8")
        assert "step detail" in text
        assert "| DEBUG   | z16sim.emu |" in text

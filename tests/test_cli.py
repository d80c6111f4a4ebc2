"""
Command-line driver tests: z16run.main() against images in tmp_path.
"""

import argparse

import pytest

import z16run
from z16sim.cpu import encoder as enc


def _image(tmp_path, words, name="prog.bin"):
    path = tmp_path / name
    path.write_bytes(enc.assemble_words(words))
    return str(path)


PRINT_MINUS_7 = [enc.imm('li', 'a0', -7), enc.ecall(1), enc.ecall(3)]


class TestRun:
    def test_trace_and_output(self, tmp_path, capsys):
        status = z16run.main([_image(tmp_path, PRINT_MINUS_7)])
        out = capsys.readouterr().out.splitlines()
        assert status == z16run.EXIT_OK
        assert out == [
            "Loaded 6 bytes into memory",
            "0x0000: li a0, -7",
            "0x0002: ecall 1",
            "-7",
            "0x0004: ecall 3",
        ]

    def test_no_trace(self, tmp_path, capsys):
        status = z16run.main([_image(tmp_path, PRINT_MINUS_7), "--no-trace"])
        out = capsys.readouterr().out.splitlines()
        assert status == 0
        assert out == ["Loaded 6 bytes into memory", "-7"]

    def test_branch_trace_shows_target(self, tmp_path, capsys):
        z16run.main([_image(tmp_path, [enc.jump('j', 2), enc.ecall(3)])])
        out = capsys.readouterr().out
        assert "0x0000: j 2  ; -> 0x0002" in out

    def test_step_limit(self, tmp_path, capsys):
        status = z16run.main([_image(tmp_path, [enc.jump('j', 0)]),
                              "--max-steps", "0x10", "--no-trace"])
        assert status == 0
        assert capsys.readouterr().out == "Loaded 2 bytes into memory\n"

    def test_halt_policy(self, tmp_path, capsys):
        image = _image(tmp_path, [0xD000, enc.imm('li', 'a0', 1), enc.ecall(1)])
        status = z16run.main([image, "--no-trace", "--on-unimplemented", "halt"])
        out = capsys.readouterr().out
        assert status == 0
        assert out == "Loaded 6 bytes into memory\n"

    def test_dump_regs(self, tmp_path, capsys):
        z16run.main([_image(tmp_path, PRINT_MINUS_7), "--no-trace", "--dump-regs"])
        out = capsys.readouterr().out
        assert "PC=0004" in out
        assert "a0=FFF9" in out

    def test_dump_mem(self, tmp_path, capsys):
        z16run.main([_image(tmp_path, PRINT_MINUS_7), "--no-trace", "--dump-mem", "0:6"])
        last = capsys.readouterr().out.splitlines()[-1]
        li = PRINT_MINUS_7[0]
        assert last.startswith(f"0000  {li & 0xFF:02X} {li >> 8:02X} 47 00 C7 00")


class TestFailures:
    def test_missing_image(self, tmp_path, capsys):
        status = z16run.main([str(tmp_path / "missing.bin")])
        captured = capsys.readouterr()
        assert status == z16run.EXIT_LOADER == 1
        assert captured.out == ""
        assert "Error opening binary file" in captured.err

    def test_addressing_fault(self, tmp_path, capsys):
        image = _image(tmp_path, [enc.imm('li', 'sp', -1), enc.store('sw', 't0', 0, 'sp')])
        status = z16run.main([image])
        captured = capsys.readouterr()
        assert status == z16run.EXIT_FAULT == 2
        assert "0x0002: sw t0, 0(sp)" in captured.out
        assert "Fault at 0x0002" in captured.err

    def test_bad_policy_is_a_usage_error(self, tmp_path):
        with pytest.raises(SystemExit) as exc:
            z16run.main([_image(tmp_path, PRINT_MINUS_7), "--on-unimplemented", "ignore"])
        assert exc.value.code == 2

    def test_negative_step_limit_is_a_usage_error(self, tmp_path):
        with pytest.raises(SystemExit) as exc:
            z16run.main([_image(tmp_path, PRINT_MINUS_7), "--max-steps", "-1"])
        assert exc.value.code == 2


class TestArgParsing:
    @pytest.mark.parametrize("text,value", [("16", 16), ("0x10", 16), (" 0X1f ", 31)])
    def test_parse_int_arg(self, text, value):
        assert z16run.parse_int_arg(text) == value

    def test_parse_range_arg(self):
        assert z16run.parse_range_arg("0x100:32") == (0x100, 32)
        assert z16run.parse_range_arg("0x100") == (0x100, 256)

    @pytest.mark.parametrize("text", ["-16:32", "0x10000:16", "0x100:-1", "zz:4"])
    def test_parse_range_arg_rejects(self, text):
        with pytest.raises(argparse.ArgumentTypeError):
            z16run.parse_range_arg(text)

    def test_negative_dump_start_is_a_usage_error(self, tmp_path):
        with pytest.raises(SystemExit) as exc:
            z16run.main([_image(tmp_path, PRINT_MINUS_7), "--dump-mem=-16:32"])
        assert exc.value.code == 2

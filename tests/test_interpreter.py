"""
Interpreter Integration Tests

Each test feeds a short program through the run loop and checks the PRINT
output, the final machine state, and the run outcome under both reporting
policies.
"""
import sys
import os
import logging
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from asm_interpreter import Interpreter, MachineState, Outcome, Policy, run, run_file
from asm_interpreter.config import INT_MAX, INT_MIN


def _run(lines, policy=Policy.BATCH, state=None):
    """Run `lines` and return (interpreter, result, printed lines)."""
    out = []
    interp = Interpreter(state=state, output=out.append)
    result = interp.run(lines, policy)
    return interp, result, out


# ═══════════════════════════════════════════════
# Test Group 1: Reference programs
# ═══════════════════════════════════════════════

class TestScenarios:

    def test_add(self):
        _, result, out = _run(["MOV r1, #5", "MOV r2, #10", "ADD r3, r1, r2", "PRINT r3"])
        assert out == ["r3 = 15"]
        assert result.ok

    def test_store_load_indirect(self):
        interp, _, out = _run([
            "MOV r0, #20", "MOV r1, #789", "STR r1, [r0]", "LDR r2, [r0]", "PRINT r2",
        ])
        assert out == ["r2 = 789"]
        assert interp.state.mem.read(20) == 789

    def test_store_load_offset(self):
        interp, _, out = _run([
            "MOV r0, #30", "MOV r1, #101", "STR r1, [r0,#4]", "LDR r2, [r0,#4]", "PRINT r2",
        ])
        assert out == ["r2 = 101"]
        assert interp.state.mem.read(34) == 101

    def test_sub(self):
        _, _, out = _run(["MOV r1, #20", "MOV r2, #7", "SUB r3, r1, r2", "PRINT r3", "EXIT"])
        assert out == ["r3 = 13"]

    @pytest.mark.parametrize("setup, op, expected", [
        ("MOV r1, #1", "LSL r2, r1, #3", 8),
        ("MOV r1, #16", "LSR r2, r1, #2", 4),
        ("MOV r1, #-32", "ASR r2, r1, #2", -8),
        ("MOV r1, #4", "ROR r2, r1, #1", 2),
        ("MOV r1, #8", "RRX r2, r1", 4),
    ])
    def test_shift_programs(self, setup, op, expected):
        _, _, out = _run([setup, op, "PRINT r2", "EXIT"])
        assert out == [f"r2 = {expected}"]


# ═══════════════════════════════════════════════
# Test Group 2: Instruction semantics
# ═══════════════════════════════════════════════

class TestArithmetic:

    def test_mov_hex_and_register(self):
        interp, _, out = _run(["MOV r0, #0xFFFFFFFF", "MOV r1, r0", "PRINT r1"])
        assert out == ["r1 = -1"]

    def test_print_keeps_register_spelling(self):
        _, _, out = _run(["MOV R3, #1", "PRINT R3"])
        assert out == ["R3 = 1"]

    def test_add_wraps_without_carry(self):
        interp, _, _ = _run(["MOV r0, #2147483647", "ADD r1, r0, #1"])
        assert interp.state.regs[1] == INT_MIN
        assert interp.state.carry == 0

    def test_sub_wraps(self):
        interp, _, _ = _run(["MOV r0, #-2147483648", "SUB r1, r0, #1"])
        assert interp.state.regs[1] == INT_MAX

    def test_register_value_operands(self):
        interp, _, _ = _run([
            "MOV r0, #12", "MOV r1, #10",
            "MUL r2, r0, r1", "AND r3, r0, r1", "ORR r4, r0, r1",
            "EOR r5, r0, r1", "BIC r6, r0, r1",
        ])
        assert interp.state.regs[2:7] == [120, 8, 14, 6, 4]

    def test_shift_by_register(self):
        interp, _, _ = _run(["MOV r0, #1", "MOV r1, #4", "LSL r2, r0, r1"])
        assert interp.state.regs[2] == 16

    def test_destination_may_alias_source(self):
        interp, _, _ = _run(["MOV r0, #3", "ADD r0, r0, r0"])
        assert interp.state.regs[0] == 6


class TestCarry:

    def test_adc_sets_and_consumes_carry(self):
        interp, _, _ = _run(["MOV r0, #0xFFFFFFFF", "ADC r1, r0, #1"])
        assert interp.state.regs[1] == 0
        assert interp.state.carry == 1
        interp.step("ADC r2, r1, #0")
        assert interp.state.regs[2] == 1
        assert interp.state.carry == 0

    def test_sbc_treats_carry_as_no_borrow(self):
        interp, _, _ = _run(["MOV r0, #5", "SBC r1, r0, #3"])
        assert interp.state.regs[1] == 1
        assert interp.state.carry == 1
        interp.step("SBC r2, r0, #3")
        assert interp.state.regs[2] == 2
        assert interp.state.carry == 1

    def test_sbc_borrow_clears_carry(self):
        interp, _, _ = _run(["MOV r0, #3", "MOV r1, #5", "SBC r2, r0, r1"])
        assert interp.state.regs[2] == -3
        assert interp.state.carry == 0

    def test_plain_ops_leave_carry(self):
        interp, _, _ = _run(["MOV r0, #-1", "ADC r1, r0, #1", "ADD r2, r0, #1", "SUB r3, r0, #5"])
        assert interp.state.carry == 1


class TestMemory:

    def test_absolute(self):
        interp, _, out = _run(["MOV r1, #55", "STR r1, #100", "LDR r2, #100", "PRINT r2"])
        assert out == ["r2 = 55"]
        assert interp.state.mem.read(100) == 55

    def test_label_address(self):
        interp, _, out = _run([
            "slot:", "MOV r1, #42", "STR r1, slot", "LDR r2, slot", "PRINT r2",
        ])
        assert out == ["r2 = 42"]
        assert interp.state.mem.read(0) == 42

    def test_label_data(self):
        _, _, out = _run(["pad: #1", "val: #0x10", "LDR r0, val", "PRINT r0"])
        assert out == ["r0 = 16"]

    def test_label_with_instruction_on_same_line(self):
        interp, _, _ = _run(["MOV r1, #9", "here: STR r1, here"])
        assert interp.state.labels.lookup("here") == 0
        assert interp.state.mem.read(0) == 9

    def test_negative_offset_saturates(self):
        interp, _, _ = _run(["MOV r0, #3", "MOV r1, #9", "STR r1, [r0, #-10]"])
        assert interp.state.mem.read(0) == 9

    def test_last_word(self):
        interp, result, _ = _run(["MOV r1, #7", "STR r1, #1023"])
        assert result.ok
        assert interp.state.mem.read(1023) == 7

    def test_out_of_bounds_is_fatal_in_batch(self):
        _, result, _ = _run(["MOV r1, #7", "STR r1, #1024", "PRINT r1"])
        assert result.outcome is Outcome.FATAL
        assert "Line 2" in result.detail
        assert "out of bounds" in result.detail

    def test_negative_register_address(self):
        _, result, _ = _run(["MOV r0, #-1", "LDR r1, [r0]"])
        assert result.outcome is Outcome.FATAL


# ═══════════════════════════════════════════════
# Test Group 3: Run loop and reporting policy
# ═══════════════════════════════════════════════

class TestRunLoop:

    PROGRAM = ["MOV r1, #1", "FOO r1", "PRINT r1"]

    def test_batch_unknown_instruction_aborts(self):
        _, result, out = _run(self.PROGRAM, Policy.BATCH)
        assert result.outcome is Outcome.UNKNOWN_INSTRUCTION
        assert result.detail == "Line 2: Unknown instruction: FOO"
        assert result.source == "FOO r1"
        assert result.lines_read == 2
        assert out == []

    def test_interactive_unknown_instruction_continues(self):
        _, result, out = _run(self.PROGRAM, Policy.INTERACTIVE)
        assert out == ["Unknown instruction: FOO", "r1 = 1"]
        assert result.ok

    @pytest.mark.parametrize("line", ["MOV r1, #" + "9" * 5000, "MOV r" + "1" * 5000 + ", #1"])
    def test_interactive_huge_numeral_continues(self, line):
        _, result, out = _run([line, "MOV r2, #1", "PRINT r2"], Policy.INTERACTIVE)
        assert out[-1] == "r2 = 1"
        assert len(out) == 2
        assert result.ok

    def test_batch_other_error_is_fatal(self):
        _, result, out = _run(["MOV r16, #1", "PRINT r0"])
        assert result.outcome is Outcome.FATAL
        assert result.detail == "Line 1: Invalid register name 'r16'. Use r0 through r15."
        assert out == []

    def test_exit_stops_run(self):
        _, result, out = _run(["MOV r1, #1", "exit", "PRINT r1"])
        assert out == []
        assert result.ok
        assert result.lines_read == 2

    def test_exit_with_operands_is_unknown(self):
        _, result, _ = _run(["EXIT r0"])
        assert result.outcome is Outcome.UNKNOWN_INSTRUCTION
        assert result.detail == "Line 1: Unknown instruction: EXIT"

    def test_end_of_input_halts(self):
        _, result, _ = _run(["MOV r1, #1", "", "// done"])
        assert result.outcome is Outcome.HALTED
        assert result.lines_read == 3

    def test_trailing_newlines_accepted(self):
        _, _, out = _run(["MOV r1, #3\n", "PRINT r1\r\n"])
        assert out == ["r1 = 3"]

    def test_failed_line_leaves_state(self):
        interp, _, out = _run(["MOV r1, #5", "MOV r1, #abc", "ADD r1, r1"], Policy.INTERACTIVE)
        assert interp.state.regs[1] == 5
        assert out[0] == "Invalid immediate literal 'abc'"
        assert out[1].startswith("Usage: ADD")

    def test_failed_line_rolls_back_label(self):
        interp, _, out = _run(["lbl: FOO", "other:"], Policy.INTERACTIVE)
        assert out == ["Unknown instruction: FOO"]
        assert "lbl" not in interp.state.labels
        assert interp.state.labels.lookup("other") == 0

    def test_duplicate_label_reported(self):
        interp, _, out = _run(["a: #1", "a: #2"], Policy.INTERACTIVE)
        assert len(out) == 1 and "already defined" in out[0]
        assert interp.state.mem.read(0) == 1

    def test_fresh_state_per_run(self):
        out = []
        run(["MOV r1, #5"], output=out.append)
        run(["PRINT r1"], output=out.append)
        assert out == ["r1 = 0"]

    def test_shared_state(self):
        state = MachineState()
        _run(["MOV r1, #5"], state=state)
        _, _, out = _run(["PRINT r1"], state=state)
        assert out == ["r1 = 5"]

    def test_run_file(self, tmp_path):
        src = tmp_path / "prog.asm"
        src.write_text("MOV r1, #5\nMOV r2, #10\nADD r3, r1, r2 // sum\nPRINT r3\nEXIT\n")
        out = []
        result = run_file(src, output=out.append)
        assert result.ok
        assert out == ["r3 = 15"]

    def test_trace_logs_state(self, caplog):
        caplog.set_level(logging.DEBUG, logger="asm_interpreter")
        out = []
        run(["MOV r1, #5"], output=out.append, trace=True)
        assert "r1=5" in caplog.text


class TestMachineState:

    def test_display(self):
        state = MachineState()
        assert state.display() == "[all zero] C=0 labels=0"
        state.set_reg(2, 7)
        state.set_carry(True)
        assert state.display() == "[r2=7] C=1 labels=0"

    def test_reset(self):
        interp, _, _ = _run(["x: #4", "MOV r1, #-1", "ADC r2, r1, #1"])
        interp.state.reset()
        assert interp.state.regs == [0] * 16
        assert interp.state.carry == 0
        assert len(interp.state.labels) == 0
        assert interp.state.mem.read(0) == 0

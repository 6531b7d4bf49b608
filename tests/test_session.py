"""
Intcode VM — Session Integration Tests

Whole programs through the batch entry point and the suspend/resume
protocol. Sample programs are the published Intcode examples (add/mul
tape, compare-to-8 diagnostics, amplifier chains, relative-base quine).
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import copy
import logging

import pytest
from intcode import (
    Session, VMConfig, ExecutionState, StateKind,
    RUNNING, NEEDS_INPUT, COMPLETED, provided_output,
    ParseError, ExecutionFault, InvalidOpcode, InvalidWriteTarget,
    InputUnderflow, ProtocolViolation, ArithmeticOverflow,
)


ECHO = "3,0,4,0,99"

EQUALS_8_POSITION = "3,9,8,9,10,9,4,9,99,-1,8"
EQUALS_8_IMMEDIATE = "3,3,1108,-1,8,3,4,3,99"
COMPARE_8 = (
    "3,21,1008,21,8,20,1005,20,22,107,8,21,20,1006,20,31,\n"
    "1106,0,36,98,0,0,1002,21,125,20,4,20,1105,1,46,104,\n"
    "999,1105,1,46,1101,1000,1,20,4,20,1105,1,46,98,99"
)
QUINE = "109,1,204,-1,1001,100,1,100,1008,100,16,101,1006,101,0,99"
RELATIVE_BASE_SAMPLE = "109,1,12101,1,-1,2,109,2,99"

AMP_SERIAL = "3,15,3,16,1002,16,10,16,1,16,15,15,4,15,99,0,0"
AMP_FEEDBACK = (
    "3,26,1001,26,-4,26,3,27,1002,27,2,27,1,27,26,27,"
    "4,27,1001,26,-1,26,1005,26,6,99,0,0,5"
)


# ═══════════════════════════════════════════════
# Batch execution
# ═══════════════════════════════════════════════

class TestRun:
    def test_sample_memory_zero(self):
        """1,9,10,3,2,3,11,0,99,30,40,50 → memory[0] == 3500"""
        vm = Session.from_text("1,9,10,3,2,3,11,0,99,30,40,50")
        assert vm.run([]) == []
        assert vm.memory_snapshot()[0] == 3500
        assert vm.state is COMPLETED

    @pytest.mark.parametrize("source,final", [
        ("1,0,0,0,99", [2, 0, 0, 0, 99]),
        ("2,3,0,3,99", [2, 3, 0, 6, 99]),
        ("2,4,4,5,99,0", [2, 4, 4, 5, 99, 9801]),
        ("1,1,1,4,99,5,6,0,99", [30, 1, 1, 4, 2, 5, 6, 0, 99]),
    ])
    def test_final_memory(self, source, final):
        vm = Session.from_text(source)
        vm.run()
        assert vm.memory_snapshot() == final

    def test_input_then_output(self):
        assert Session.from_text(ECHO).run([123]) == [123]

    @pytest.mark.parametrize("source", [EQUALS_8_POSITION, EQUALS_8_IMMEDIATE])
    def test_equals_eight(self, source):
        vm = Session.from_text(source)
        assert vm.run_pure([8]) == [1]
        assert vm.run_pure([6]) == [0]

    @pytest.mark.parametrize("value,expected", [(7, 999), (8, 1000), (9, 1001)])
    def test_compare_to_eight(self, value, expected):
        assert Session.from_text(COMPARE_8).run([value]) == [expected]

    def test_out_of_bounds_output(self):
        """Reads past the program end see zero"""
        assert Session.from_text("4, 0, 4, 67, 99").run() == [4, 0]

    def test_out_of_bounds_write(self):
        assert Session.from_text("01101,2,3,7,4,7,99").run() == [5]

    def test_quine(self):
        vm = Session.from_text(QUINE)
        assert vm.run() == [int(v) for v in QUINE.split(',')]

    def test_large_output(self):
        assert Session.from_text("1102,34915192,34915192,7,4,7,99,0").run() == [1219070632396864]

    def test_unused_inputs_ignored(self):
        assert Session.from_text(ECHO).run([1, 2, 3]) == [1]

    def test_deterministic(self):
        base = Session.from_text(COMPARE_8)
        runs = [base.run_pure([9]) for _ in range(3)]
        assert runs == [[1001]] * 3


class TestRunPureAndPatching:
    def test_run_pure_leaves_session_untouched(self):
        vm = Session.from_text("1,0,0,0,99")
        vm.run_pure()
        assert vm.memory_snapshot() == [1, 0, 0, 0, 99]
        assert vm.state is RUNNING
        assert vm.instruction_pointer == 0

    def test_patch_two_cells_before_running(self):
        """Brute-force style: set memory[1] and memory[2], read memory[0]"""
        base = Session.from_text("1,0,0,0,99")
        results = {}
        for noun in range(3):
            vm = base.clone()
            vm[1] = noun
            vm[2] = 4
            vm.run()
            results[noun] = vm[0]
        # memory[0] = memory[noun] + memory[4]
        assert results == {0: 100, 1: 100, 2: 103}


# ═══════════════════════════════════════════════
# Suspend / resume protocol
# ═══════════════════════════════════════════════

class TestProtocol:
    def test_echo_protocol(self):
        """NeedsInput → resume_with_input(7) → ProvidedOutput(7) → resume → Completed"""
        state, vm = Session.from_text(ECHO).run_until_needs_interaction()
        assert state is NEEDS_INPUT
        state, vm = vm.resume_with_input(7)
        assert state == provided_output(7)
        assert state.kind is StateKind.PROVIDED_OUTPUT
        assert state.value == 7
        state, vm = vm.resume()
        assert state is COMPLETED
        assert vm.state.is_completed

    def test_cursor_is_the_session(self):
        vm = Session.from_text(ECHO)
        state, cursor = vm.run_until_needs_interaction()
        assert cursor is vm

    def test_fresh_session_is_running(self):
        vm = Session.from_text(ECHO)
        assert vm.state == ExecutionState(StateKind.RUNNING)
        assert vm.state.is_running

    def test_output_only_program(self):
        state, vm = Session.from_text("104,1,104,2,99").run_until_needs_interaction()
        seen = []
        while not state.is_completed:
            seen.append(state.value)
            state, vm = vm.resume()
        assert seen == [1, 2]

    def test_resume_with_input_while_output_pending(self):
        """ProtocolViolation, and the session is left exactly as it was"""
        _, vm = Session.from_text(ECHO).run_until_needs_interaction()
        state, vm = vm.resume_with_input(7)
        before = (vm.state, vm.instruction_pointer, vm.memory_snapshot(), vm.steps)

        with pytest.raises(ProtocolViolation) as exc:
            vm.resume_with_input(1)

        assert exc.value.operation == 'resume_with_input'
        assert (vm.state, vm.instruction_pointer, vm.memory_snapshot(), vm.steps) == before
        assert vm.faulted is None
        state, vm = vm.resume()
        assert state is COMPLETED

    def test_resume_while_waiting_for_input(self):
        _, vm = Session.from_text(ECHO).run_until_needs_interaction()
        with pytest.raises(ProtocolViolation):
            vm.resume()
        assert vm.state is NEEDS_INPUT

    def test_resume_before_start(self):
        vm = Session.from_text(ECHO)
        with pytest.raises(ProtocolViolation):
            vm.resume()
        with pytest.raises(ProtocolViolation):
            vm.resume_with_input(1)

    @pytest.mark.parametrize("call", [
        lambda vm: vm.run(),
        lambda vm: vm.run_until_needs_interaction(),
        lambda vm: vm.resume(),
        lambda vm: vm.resume_with_input(1),
        lambda vm: vm.step(),
    ])
    def test_every_call_after_completed(self, call):
        vm = Session.from_text("99")
        vm.run()
        with pytest.raises(ProtocolViolation):
            call(vm)

    def test_repeat_interaction_call_while_waiting(self):
        """Re-entering at NeedsInput re-attempts the same IN instruction"""
        state, vm = Session.from_text(ECHO).run_until_needs_interaction()
        state, vm = vm.run_until_needs_interaction()
        assert state is NEEDS_INPUT
        assert vm.instruction_pointer == 0

    def test_input_must_be_int(self):
        _, vm = Session.from_text(ECHO).run_until_needs_interaction()
        with pytest.raises(TypeError):
            vm.resume_with_input("7")
        assert vm.state is NEEDS_INPUT

    def test_protocol_violation_is_not_execution_fault(self):
        assert not issubclass(ProtocolViolation, ExecutionFault)


class TestAmplifiers:
    @staticmethod
    def _serial(source, phases):
        signal = 0
        base = Session.from_text(source)
        for phase in phases:
            signal = base.run_pure([phase, signal])[0]
        return signal

    @staticmethod
    def _feedback(source, phases):
        amps = []
        for phase in phases:
            state, vm = Session.from_text(source).run_until_needs_interaction()
            assert state.needs_input
            amps.append(list(vm.resume_with_input(phase)))

        signal, last = 0, None
        while True:
            for slot in amps:
                state, vm = slot
                if state.is_completed:
                    return last
                state, vm = vm.resume_with_input(signal)
                assert state.has_output
                signal = state.value
                slot[0], slot[1] = vm.resume()
            last = signal

    def test_serial_chain(self):
        assert self._serial(AMP_SERIAL, [4, 3, 2, 1, 0]) == 43210

    def test_feedback_loop(self):
        assert self._feedback(AMP_FEEDBACK, [9, 8, 7, 6, 5]) == 139629729


# ═══════════════════════════════════════════════
# Cloning
# ═══════════════════════════════════════════════

class TestClone:
    def test_clone_before_run(self):
        base = Session.from_text("1,0,0,0,99")
        other = base.clone()
        other.run()
        assert base.memory_snapshot() == [1, 0, 0, 0, 99]
        assert other.memory_snapshot() == [2, 0, 0, 0, 99]

    def test_clone_mid_protocol(self):
        _, vm = Session.from_text(ECHO).run_until_needs_interaction()
        branch = vm.clone()
        state_a, _ = vm.resume_with_input(1)
        state_b, _ = branch.resume_with_input(2)
        assert state_a == provided_output(1)
        assert state_b == provided_output(2)

    @pytest.mark.parametrize("copier", [copy.copy, copy.deepcopy])
    def test_copy_module(self, copier):
        base = Session.from_text("1,0,0,0,99")
        other = copier(base)
        other.run()
        assert base.state is RUNNING
        assert base[0] == 1
        assert other[0] == 2


# ═══════════════════════════════════════════════
# Relative base, stepping, faults, trace
# ═══════════════════════════════════════════════

class TestRelativeBase:
    def test_sample_under_legacy_profile(self):
        """109,1,12101,1,-1,2,109,2,99: RB goes +1 then +2, run completes"""
        vm = Session.from_text(RELATIVE_BASE_SAMPLE, VMConfig.from_profile("legacy"))
        assert vm.step() is RUNNING
        assert vm.relative_base == 1
        assert vm.step() is RUNNING
        assert vm.relative_base == 1
        assert vm.step() is RUNNING
        assert vm.relative_base == 3
        assert vm.step() is COMPLETED
        assert vm.steps == 4
        assert vm[2] == 110

    def test_sample_batch_under_legacy_profile(self):
        vm = Session.from_text(RELATIVE_BASE_SAMPLE, VMConfig(allow_immediate_writes=True))
        assert vm.run() == []
        assert vm.relative_base == 3

    def test_sample_rejected_by_default(self):
        """Third parameter of 12101 is an immediate-mode write target"""
        vm = Session.from_text(RELATIVE_BASE_SAMPLE)
        with pytest.raises(InvalidWriteTarget):
            vm.run()
        assert vm.relative_base == 1


class TestCellValues:
    """Values entering the tape from the driver side"""

    I64 = VMConfig.from_profile("i64")

    def test_program_literal_too_wide(self):
        with pytest.raises(ArithmeticOverflow) as exc:
            Session.from_text(f"104,{2 ** 80},99", self.I64)
        assert exc.value.value == 2 ** 80
        assert exc.value.address == 1

    def test_program_literal_unbounded_by_default(self):
        assert Session.from_text(f"104,{2 ** 80},99").run() == [2 ** 80]

    @pytest.mark.parametrize("cell", ["1", 1.0, None, True])
    def test_program_cells_must_be_ints(self, cell):
        with pytest.raises(TypeError):
            Session([1, cell, 0, 0, 99])

    def test_patch_too_wide(self):
        vm = Session.from_text("1,0,0,0,99", self.I64)
        with pytest.raises(ArithmeticOverflow):
            vm[1] = 2 ** 63
        assert vm[1] == 0
        assert vm.faulted is None
        assert vm.run() == []

    def test_patch_must_be_int(self):
        """A rejected patch leaves the session runnable"""
        vm = Session.from_text("1,0,0,0,99")
        with pytest.raises(TypeError):
            vm[1] = "x"
        with pytest.raises(TypeError):
            vm[1] = False
        assert vm.memory_snapshot() == [1, 0, 0, 0, 99]
        assert vm.run() == []
        assert vm[0] == 2

    def test_resume_with_too_wide_input(self):
        state, vm = Session.from_text(ECHO, self.I64).run_until_needs_interaction()
        assert state == NEEDS_INPUT
        with pytest.raises(ArithmeticOverflow):
            vm.resume_with_input(2 ** 70)
        assert isinstance(vm.faulted, ArithmeticOverflow)
        assert vm[0] == 3
        with pytest.raises(ProtocolViolation):
            vm.resume_with_input(1)

    def test_run_with_too_wide_input(self):
        vm = Session.from_text(ECHO, self.I64)
        with pytest.raises(ArithmeticOverflow):
            vm.run([2 ** 70])
        assert isinstance(vm.faulted, ArithmeticOverflow)

    def test_run_inputs_must_be_ints(self):
        vm = Session.from_text(ECHO)
        with pytest.raises(TypeError):
            vm.run(["7"])
        assert vm.faulted is None
        assert vm.run([7]) == [7]

    def test_relative_base_too_wide(self):
        vm = Session.from_text(f"109,{2 ** 62},109,{2 ** 62},99", self.I64)
        with pytest.raises(ArithmeticOverflow):
            vm.run()
        assert vm.relative_base == 2 ** 62


class TestFaults:
    def test_parse_error(self):
        with pytest.raises(ParseError) as exc:
            Session.from_text("1,2,potato,4")
        assert exc.value.token == 'potato'
        assert exc.value.position == 2

    def test_invalid_opcode(self):
        with pytest.raises(InvalidOpcode):
            Session.from_text("42").run()

    def test_running_off_the_end(self):
        with pytest.raises(InvalidOpcode) as exc:
            Session.from_text("1,0,0,0").run()
        assert exc.value.raw == 0
        assert exc.value.address == 4

    def test_input_underflow(self):
        vm = Session.from_text("3,0,3,1,99")
        with pytest.raises(InputUnderflow) as exc:
            vm.run([5])
        assert exc.value.consumed == 1
        assert vm[0] == 5

    def test_faulted_session_refuses_further_calls(self):
        vm = Session.from_text("3,0,3,1,99")
        with pytest.raises(InputUnderflow):
            vm.run([5])
        assert isinstance(vm.faulted, InputUnderflow)
        with pytest.raises(ProtocolViolation):
            vm.resume_with_input(6)
        with pytest.raises(ProtocolViolation):
            vm.run([6])

    def test_fault_does_not_touch_clones(self):
        base = Session.from_text("3,0,3,1,99")
        other = base.clone()
        with pytest.raises(InputUnderflow):
            base.run([5])
        assert other.run([5, 6]) == []
        assert other.memory_snapshot()[:2] == [5, 6]

    def test_fault_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="intcode.session"):
            with pytest.raises(InvalidOpcode):
                Session.from_text("42").run()
        assert "faulted" in caplog.text


class TestStepAndTrace:
    def test_step_through(self):
        vm = Session.from_text("1,0,0,0,99")
        assert vm.step() is RUNNING
        assert vm.instruction_pointer == 4
        assert vm.step() is COMPLETED
        with pytest.raises(ProtocolViolation):
            vm.step()

    def test_trace_lines(self):
        vm = Session.from_text("1,0,0,0,99")
        vm.enable_trace()
        vm.run()
        lines = vm.get_trace().splitlines()
        assert len(lines) == 2
        assert lines[0].startswith("00000: ADD  0, 0, 0")
        assert lines[1].startswith("00004: HALT")

    def test_trace_from_config(self):
        vm = Session.from_text("99", VMConfig(trace=True))
        vm.run()
        assert vm.get_trace().startswith("00000: HALT")
        vm.clear_trace()
        assert vm.get_trace() == ""

    def test_trace_off_by_default(self):
        vm = Session.from_text("1,0,0,0,99")
        vm.run()
        assert vm.get_trace() == ""

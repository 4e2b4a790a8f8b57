"""Tests for the FlexShop text reports."""

from jobshop.models import MachineSequence, Schedule, ScheduledTask, SolverStatus
from jobshop.report import format_instance, format_schedule, format_task


def test_format_task(scenario_a):
    assert format_task(scenario_a.jobs[0].tasks[0]) == "J_1, T_1, AltCount=2: (M_1,3) | (M_2,6)"


def test_format_instance(scenario_a):
    lines = format_instance(scenario_a).splitlines()
    assert lines[0] == "Test: 2 jobs, 3 machines"
    assert lines[1] == "Machines: M_1 M_2 M_3"
    assert lines[2] == "Jobs:"
    assert lines[3] == "J_1:"
    assert lines[-1] == "J_2, T_3, AltCount=1: (M_3,3)"


def test_format_schedule():
    schedule = Schedule(
        instance_name="Test",
        status=SolverStatus.OPTIMAL,
        makespan=9,
        machines=[
            MachineSequence(machine_id=1, name="M_1", tasks=[
                ScheduledTask(job_id=2, task_id=1, machine_id=1, alternative=0, start=0, end=3, duration=3),
                ScheduledTask(job_id=1, task_id=2, machine_id=1, alternative=0, start=6, end=9, duration=3),
            ]),
            MachineSequence(machine_id=2, name="M_2", tasks=[]),
        ],
    )
    assert format_schedule(schedule) == "\n".join([
        "M_1:",
        "  Tasks: J_2/T_1, J_1/T_2",
        "  Starting times: 0 6",
        "M_2:",
        "  Tasks: ",
        "  Starting times: ",
        "Makespan: 9 (optimal)",
    ])


def test_reports_are_pure(scenario_a):
    assert format_instance(scenario_a) == format_instance(scenario_a)
    assert scenario_a.job_count() == 2

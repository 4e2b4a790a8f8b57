"""Tests for the FlexShop domain model."""

import pytest
from pydantic import ValidationError

from jobshop.errors import InvalidInstance
from jobshop.instance import Instance
from jobshop.models import AlternativeSpec, JobSpec, ScheduleRequest, TaskSpec


class TestRegistries:
    def test_ids_are_sequential_from_one(self):
        data = Instance(name="ids")
        machines = [data.make_machine() for _ in range(3)]
        jobs = [data.make_job() for _ in range(2)]
        assert [m.id for m in machines] == [1, 2, 3]
        assert [j.id for j in jobs] == [1, 2]
        assert data.machine_count() == 3
        assert data.job_count() == 2

    def test_derived_names(self, scenario_a):
        assert [m.name for m in scenario_a.machines] == ["M_1", "M_2", "M_3"]
        assert scenario_a.jobs[1].name == "J_2"
        assert scenario_a.jobs[1].tasks[2].name == "J_2, T_3, AltCount=1"

    def test_task_ids_follow_job_order(self, scenario_a):
        j2 = scenario_a.jobs[1]
        assert [t.id for t in j2.tasks] == [1, 2, 3]
        assert all(t.job_id == 2 for t in j2.tasks)

    def test_ids_stable_after_append(self, scenario_a):
        first = scenario_a.machines[0]
        scenario_a.make_machine()
        assert scenario_a.machines[0] is first
        assert scenario_a.machines[-1].id == 4

    def test_blank_name_defaults_to_unnamed(self):
        assert Instance(name="   ").name == "unnamed"
        assert Instance().name == "unnamed"

    def test_machine_is_immutable(self):
        m = Instance().make_machine()
        with pytest.raises(ValidationError):
            m.id = 7


class TestTaskConstruction:
    def test_alternatives(self, scenario_a):
        task = scenario_a.jobs[0].tasks[0]
        assert task.alternatives_count == 2
        assert [(m.id, d) for m, d in task.alternatives] == [(1, 3), (2, 6)]

    def test_add_alternatives_pairs(self):
        data = Instance()
        m1, m2 = data.make_machine(), data.make_machine()
        task = data.make_job().add_alternatives([(m1, 4), (m2, 5)])
        assert task.durations == [4, 5]
        assert task.machines == [m1, m2]

    def test_mismatched_lengths_rejected(self):
        data = Instance()
        m1, m2 = data.make_machine(), data.make_machine()
        job = data.make_job()
        with pytest.raises(InvalidInstance):
            job.add_task([m1, m2], [3])
        assert job.tasks == []

    def test_empty_alternatives_rejected(self):
        job = Instance().make_job()
        with pytest.raises(InvalidInstance):
            job.add_task([], [])

    def test_non_positive_duration_rejected(self):
        data = Instance()
        m1 = data.make_machine()
        with pytest.raises(InvalidInstance):
            data.make_job().add_task([m1], [0])


class TestHorizon:
    def test_scenario_a_horizon(self, scenario_a):
        assert scenario_a.horizon() == 6 + 3 + 6 + 3 + 3

    def test_empty_instance_horizon(self):
        assert Instance().horizon() == 0


class TestRequestConversion:
    def test_to_instance(self):
        req = ScheduleRequest(
            name="wire",
            num_machines=2,
            jobs=[JobSpec(tasks=[
                TaskSpec(alternatives=[AlternativeSpec(machine_id=1, duration=2),
                                       AlternativeSpec(machine_id=2, duration=4)]),
                TaskSpec(alternatives=[AlternativeSpec(machine_id=2, duration=1)]),
            ])],
        )
        data = req.to_instance()
        assert data.name == "wire"
        assert data.machine_count() == 2
        assert data.jobs[0].tasks[0].machines[1] is data.machines[1]
        assert data.horizon() == 5

    def test_mismatch_surfaces_as_invalid_instance(self):
        req = ScheduleRequest(num_machines=1, jobs=[JobSpec(tasks=[TaskSpec(alternatives=[])])])
        with pytest.raises(InvalidInstance):
            req.to_instance()

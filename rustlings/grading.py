"""Grading every exercise at once and writing a JSON report."""

from __future__ import annotations

import json
import os
import threading
import time
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass, field
from pathlib import Path

from rustlings.exercise import Exercise
from rustlings.run import run
from rustlings.verify import ExerciseFailed

DEFAULT_REPORT_PATH = ".github/result/check_result.json"


@dataclass
class ExerciseResult:
    """Whether one exercise passed."""

    name: str
    result: bool


@dataclass
class ExerciseStatistics:
    """Totals over a grading run."""

    total_exercations: int = 0
    total_succeeds: int = 0
    total_failures: int = 0
    total_time: int = 0


@dataclass
class ExerciseCheckList:
    """The full grading report."""

    exercises: list[ExerciseResult] = field(default_factory=list)
    user_name: str | None = None
    statistics: ExerciseStatistics = field(default_factory=ExerciseStatistics)

    def to_json(self) -> str:
        """Serialise the report as indented JSON."""
        return json.dumps(asdict(self), indent=2, ensure_ascii=False)


def _now() -> int:
    return int(time.time())


def grade_all(exercises: Iterable[Exercise]) -> ExerciseCheckList:
    """Run every exercise concurrently and collect the results in completion order."""
    exercise_list = list(exercises)
    total = len(exercise_list)
    check_list = ExerciseCheckList(statistics=ExerciseStatistics(total_exercations=total))
    lock = threading.Lock()
    rights = 0

    def grade(exercise: Exercise, started: int) -> None:
        nonlocal rights
        try:
            run(exercise, True)
        except ExerciseFailed:
            passed = False
        else:
            passed = True
        with lock:
            if passed:
                rights += 1
                print(f"{exercise.name}执行成功")
            else:
                print(f"{exercise.name}执行失败")
            print(f"总的题目数: {total}")
            print(f"当前做正确的题目数: {rights}")
            print(f"当前修改试卷耗时: {_now() - started} s")
            check_list.exercises.append(ExerciseResult(exercise.name, passed))
            if passed:
                check_list.statistics.total_succeeds += 1
            else:
                check_list.statistics.total_failures += 1

    with ThreadPoolExecutor(max_workers=os.cpu_count() or 1) as pool:
        futures = [pool.submit(grade, exercise, _now()) for exercise in exercise_list]
        for future in futures:
            future.result()
    return check_list


def cicv_verify(
    exercises: Iterable[Exercise], output_path: str | os.PathLike = DEFAULT_REPORT_PATH
) -> ExerciseCheckList:
    """Grade all exercises and write the report to output_path."""
    started = _now()
    check_list = grade_all(exercises)
    total_time = _now() - started
    print(
        "===============================试卷批改完成,总耗时: "
        f"{total_time} s; =================================="
    )
    check_list.statistics.total_time = total_time
    Path(output_path).write_text(check_list.to_json(), encoding="utf-8")
    return check_list
"""Loading jobs from a YAML file.

The file lists jobs that run a shell command on a schedule:

    jobs:
      - name: heartbeat
        every: 5 minutes and 30 seconds
        command: echo alive
      - name: warmup
        in: 10s
        command: ./warm.sh

A bare number is read as seconds.
"""

import logging
import shlex
import subprocess
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from cadence.errors import ConstructionError, JobsFileError
from cadence.interval import Interval, TimeUnit
from cadence.job import Action, Job
from cadence.schedule import Once, Periodic, Schedule

logger = logging.getLogger(__name__)


class JobEntry(BaseModel):
    """One job definition from a jobs file.

    Exactly one of ``every`` and ``in`` must be set.

    Attributes:
        name: Human-readable job name.
        every: Interval text for a recurring job.
        in_: Delay text for a one-shot job (``in`` in the file).
        command: Shell command run on every firing.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    name: str | None = Field(default=None, description="Human-readable job name")
    every: str | int | None = Field(default=None, description="Interval for a recurring job")
    in_: str | int | None = Field(default=None, alias="in", description="Delay for a one-shot job")
    command: str = Field(..., min_length=1, description="Shell command to run")

    @model_validator(mode="after")
    def check_schedule(self) -> "JobEntry":
        """Validate that exactly one schedule field is set."""
        if (self.every is None) == (self.in_ is None):
            raise ValueError("exactly one of 'every' or 'in' is required")
        return self

    def build_schedule(self) -> Schedule:
        if self.every is not None:
            return Periodic(_to_interval(self.every))
        return Once(_to_interval(self.in_))

    def build_job(self) -> Job:
        """Create the job described by this entry.

        Raises:
            ConstructionError: If the interval or command is invalid.
        """
        return Job(self.build_schedule(), command_action(self.command), name=self.name)


def _to_interval(value: str | int) -> Interval:
    if isinstance(value, int):
        return Interval.of(value, TimeUnit.SECONDS)
    return Interval.parse(value)


def command_action(command: str) -> Action:
    """Create an action that runs ``command`` and fails on a non-zero exit."""
    try:
        argv = shlex.split(command)
    except ValueError as e:
        raise JobsFileError(f"Invalid command {command!r}: {e}") from e
    if not argv:
        raise JobsFileError("Command is empty")

    def run() -> None:
        logger.debug(f"Running command: {command}")
        subprocess.run(argv, check=True)

    return run


def load_jobs_from_file(jobs_file: Path) -> list[Job]:
    """Load jobs from a YAML file.

    Args:
        jobs_file: Path to the jobs file.

    Returns:
        Jobs ready to be added to a scheduler, in file order.

    Raises:
        JobsFileError: If the file is missing, unreadable or malformed.
    """
    jobs_file = Path(jobs_file)
    if not jobs_file.exists():
        raise JobsFileError(f"Jobs file not found: {jobs_file}")

    try:
        with open(jobs_file) as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise JobsFileError(f"Cannot read {jobs_file}: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get("jobs"), list):
        raise JobsFileError(f"{jobs_file} must contain a 'jobs' list")

    jobs = []
    for index, raw in enumerate(data["jobs"], start=1):
        if not isinstance(raw, dict):
            raise JobsFileError(f"Job #{index} in {jobs_file} must be a mapping")
        try:
            entry = JobEntry.model_validate(raw)
            jobs.append(entry.build_job())
        except (ValidationError, ConstructionError) as e:
            raise JobsFileError(f"Job #{index} in {jobs_file} is invalid: {e}") from e

    logger.info(f"Loaded {len(jobs)} jobs from {jobs_file}")
    return jobs

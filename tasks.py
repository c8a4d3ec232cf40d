from pathlib import Path

from invoke import task

PLANS_DIR = Path(__file__).resolve().parent / "plans"


@task
def lint(c):
    c.run("ruff check .")


@task
def format_check(c):
    c.run("ruff format --check .")


@task
def test(c, path="tests"):
    c.run(f"pytest {path}")


@task
def validate_plans(c):
    """Validate every ranking plan under plans/."""
    for plan in sorted(PLANS_DIR.glob("*.yaml")):
        c.run(f"movie-ranker validate {plan}")


@task
def simulate(c, plan="sci_fi_night", seed=7, db=None):
    """Run a bundled plan with random winners, e.g. `invoke simulate --db ranker.db`."""
    cmd = f"movie-ranker simulate {PLANS_DIR / plan}.yaml --seed {seed}"
    if db:
        cmd += f" --db {db}"
    c.run(cmd)


@task
def ci(c):
    lint(c)
    format_check(c)
    validate_plans(c)
    test(c)

# ABOUTME: Marks the jobs package that hosts batch entrypoints.
# ABOUTME: Run the daily batch with `python -m src.jobs.daily_run`.

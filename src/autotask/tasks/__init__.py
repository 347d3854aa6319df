"""
Task subsystem.

Components:
- task_models.py: data structures (Task, TaskStatus, LogEntry, LogType)
- task_store.py: in-memory task sequence + mutation helpers
- event_log.py: append-only event log
- task_generator.py: initial decomposition, follow-ups, prioritization
- task_executor.py: simulated and delegated execution strategies
- task_scheduler.py: the agent loop (tick state machine + timer)
- task_api.py: operator commands used by the rest of the app
"""

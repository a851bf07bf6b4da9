"""
Task subsystem.

Components:
- task_models.py: data structures (Task, Subtask, TaskDocument, enums)
- task_ids.py: "N" / "N.M" id tokens -> TopRef / SubRef
- task_store.py: JSON file store (whole-document load/save)
- resolver.py: dependency satisfaction + next-task selection (pure)
- validation.py: self/dangling/duplicate/cycle findings (networkx)
- mutations.py: validate-then-write edits on an in-memory document
- expansion.py: LLM subtask generation
- task_files.py: Markdown export
- task_api.py: load -> operate -> save helpers used by the CLI
"""

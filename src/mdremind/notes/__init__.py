"""Notes tree: reminders parsed from markdown checklists.

Layout (any depth, ignored directories pruned):
    ~/notes/
    ├── inbox.md                       # - [ ] Pay rent [due:: 2024-01-01]
    ├── projects/
    │   └── launch.md                  # - [ ] Ship it [due:: 2024-03-01 5:00 PM]
    └── .trash/                        # listed in ignored_directories

Markdown files are the source of truth. The store keeps one immutable
snapshot of every reminder, rebuilt in full on each reconciliation.
"""

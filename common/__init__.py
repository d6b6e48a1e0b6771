"""
Repair Desk - Common Package

Ambient infrastructure shared by the workflow engine and its console:
  - common.logging: JSON log lines, DeskLogger event emitter
  - common.config: layered YAML config (base → overlay → RD_* env vars)
  - common.validate: operator input checks (email, phone, dates, S/N)
"""

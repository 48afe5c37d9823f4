"""서비스 패키지 — 비즈니스 로직 계층.

Service package — Business logic layer.
Services enforce the planning and production rules (availability checks,
step state machine, scheduling) on top of the repositories. They flush
but never commit; the calling router owns the transaction.
"""

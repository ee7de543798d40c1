"""
Scheduling application services.

Import from the submodules directly:
- booking_ledger: BookingLedger
- completion_orchestrator: CompletionOrchestrator
- patient_notifier: PatientNotifier
- keyed_locks: KeyedLocks
"""

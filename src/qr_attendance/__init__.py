"""QR attendance core.

Organized by feature modules (students, attendance, notifications, reports)
with a thin Flask controller layer over service/repository layers:
QR scans drive a per student-day check-in/check-out ledger, and every
accepted scan queues a WhatsApp message to the student's guardian.
"""

__version__ = "0.1.0"

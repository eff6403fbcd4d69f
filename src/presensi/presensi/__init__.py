"""e-Presensi package.

Feature modules (attendance, leaves, corrections, users, ...) each carry a
model, a repository interface with its MySQL implementation, a service, and a
thin Flask controller.
"""

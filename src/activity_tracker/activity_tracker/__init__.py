"""Activity Tracker package.

Employees log weekly time allocations per client and activity; admins browse
the roster and export everything to CSV. Organized by feature modules
(timesheets, users, export, ...) with a thin Flask controller layer on top of
service/repository layers.
"""

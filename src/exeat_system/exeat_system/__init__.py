"""Exeat System package.

Feature modules (exeats, overdue, debts, notifications, staff) each keep a
service layer over Protocol repositories; Flask controllers and MySQL
repositories are thin adapters around them.
"""

"""School Records package.

This package is organized by feature modules (access, grades, attendance,
justifications, roster) with a thin Flask controller layer and
service/repository layers underneath.
"""

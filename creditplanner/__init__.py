"""
creditplanner: timetable generation, conflict detection and analysis for
study plans.
"""

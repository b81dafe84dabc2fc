import typing as t

# Identifiers are issued by the remote site; locally they are plain integers
# kept distinct for the type checker.
AssignmentID = t.NewType("AssignmentID", int)
CourseID = t.NewType("CourseID", int)
ModuleID = t.NewType("ModuleID", int)
UserID = t.NewType("UserID", int)

"""HTTP endpoints reserved for course-of-action, operator and step management."""
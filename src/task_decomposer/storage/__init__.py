"""SQLite persistence shared by the actor store and the task registry."""

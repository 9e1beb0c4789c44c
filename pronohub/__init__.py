"""pronohub - score synchronization for football prediction tournaments."""

"""Submit and monitor simulation jobs on a remote HPC cluster."""

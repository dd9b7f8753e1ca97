"""Wrappers over the llvmlite IR layer and native backend."""

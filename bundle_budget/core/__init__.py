"""Estimator, pricing catalog and budget selector."""

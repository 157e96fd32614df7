"""Plotting utilities for training curves."""

from __future__ import annotations

import matplotlib.pyplot as plt
from matplotlib.figure import Figure

from ..training.trainer import TrainingHistory


def plot_training_history(history: TrainingHistory, *, title: str = "Training") -> Figure:
    """Plot loss and accuracy per epoch on twin axes."""

    fig, loss_ax = plt.subplots()
    epochs = range(1, len(history) + 1)
    loss_ax.plot(epochs, history.losses, color="tab:blue", label="loss")
    loss_ax.set_xlabel("Epoch")
    loss_ax.set_ylabel("Binary cross-entropy")
    acc_ax = loss_ax.twinx()
    acc_ax.plot(epochs, history.accuracies, color="tab:orange", label="accuracy")
    acc_ax.set_ylabel("Accuracy")
    acc_ax.set_ylim(-0.05, 1.05)
    loss_ax.set_title(title)
    fig.tight_layout()
    return fig

from cluster_exerciser.commands import exercise


if __name__ == "__main__":
    exercise()

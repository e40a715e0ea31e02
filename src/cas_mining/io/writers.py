from pathlib import Path
import pandas as pd
import matplotlib.pyplot as plt

def atomic_write_csv(df: pd.DataFrame, out: Path, index: bool = False) -> None:
    out.parent.mkdir(parents=True, exist_ok=True)
    tmp = out.with_suffix(out.suffix + ".tmp")
    df.to_csv(tmp, index=index)
    tmp.replace(out)             # atomic replace on same filesystem

def save_figure(fig: plt.Figure, out: Path, dpi: int = 150) -> Path:
    out.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(out, dpi=dpi, bbox_inches="tight")
    plt.close(fig)
    return out

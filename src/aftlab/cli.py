
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer

from .compare import logrank, rank_sum
from .io import infer_covariates, load_config, load_csv, load_fit, save_fit, save_json
from .lognormal import LognormalDomainError, location_scale_from_moments, moments_from_location_scale
from .models.aft import fit_aft, fit_record, implied_moments, time_ratios
from .preprocess import prepare_frame
from .schema import validate_schema
from .simulate import sample_size_curve, simulate_trial

app = typer.Typer(help="Parametric (AFT) survival analysis CLI")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging.")):
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING, format="%(levelname)s %(name)s: %(message)s")


def _columns(cfg: dict) -> tuple[str, str, Optional[str]]:
    cols = cfg["columns"]
    return cols["time"], cols["event"], cols.get("group")


def _prep(csv: str | Path, cfg: dict):
    df = load_csv(csv)
    time_col, event_col, group_col = _columns(cfg)
    covs = infer_covariates(
        df,
        time_col=time_col,
        event_col=event_col,
        include=cfg["covariates"].get("include"),
        exclude=cfg["covariates"].get("exclude"),
    )
    validate_schema(df, time_col, event_col, covs, group_col)
    pp = cfg.get("preprocess", {})
    data = prepare_frame(df, time_col, event_col, covs, pp.get("impute", "median"), pp.get("scale"))
    groups = df[group_col] if group_col else None
    return data, covs, time_col, event_col, groups


@app.command()
def moments(mu: float = typer.Option(...), sigma: float = typer.Option(...)):
    """Natural-scale mean/variance of a lognormal given location/scale."""
    try:
        mean, variance = moments_from_location_scale(mu, sigma)
    except LognormalDomainError as e:
        raise typer.BadParameter(str(e)) from e
    typer.echo(f"mean={mean:.10g} variance={variance:.10g}")


@app.command()
def params(mean: float = typer.Option(...), variance: float = typer.Option(...)):
    """Location/scale (mu, sigma) of a lognormal given natural-scale mean/variance."""
    try:
        mu, sigma = location_scale_from_moments(mean, variance)
    except LognormalDomainError as e:
        raise typer.BadParameter(str(e)) from e
    typer.echo(f"mu={mu:.10g} sigma={sigma:.10g}")


@app.command()
def validate(csv: str, config: str):
    """Validate required columns/types in CSV using the given config."""
    cfg = load_config(config)
    try:
        data, covs, *_ = _prep(csv, cfg)
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e
    typer.echo(f"Schema OK: {data.shape}, covariates={covs}")


@app.command()
def simulate(
    out: str,
    n_per_arm: int = 100,
    control_mean: float = 665.0,
    control_variance: float = 665.0**2,
    time_ratio: float = 1.5,
    censor_time: Optional[float] = None,
    seed: int = 42,
):
    """Simulate a two-arm lognormal trial and write it as CSV."""
    try:
        df = simulate_trial(n_per_arm, control_mean, control_variance, time_ratio, censor_time, seed)
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e
    outp = Path(out)
    outp.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(outp, index=False)
    typer.echo(f"Wrote {len(df)} rows ({int(df['event'].sum())} events) to {outp}")


@app.command("fit")
def fit(model: str, csv: str, config: str, out: str):
    """Fit an AFT model (exponential | lognormal | bayes-lognormal | bayes-exponential)."""
    cfg = load_config(config)
    outp = Path(out)
    outp.mkdir(parents=True, exist_ok=True)
    try:
        data, covs, time_col, event_col, groups = _prep(csv, cfg)
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e

    model = model.lower()
    if model.startswith("bayes-"):
        from .models.bayes import fit_bayes_aft

        bc = cfg.get("bayes", {})
        try:
            res = fit_bayes_aft(
                data,
                time_col,
                event_col,
                covs,
                family=model.split("-", 1)[1],
                draws=int(bc.get("draws", 1000)),
                tune=int(bc.get("tune", 1000)),
                chains=int(bc.get("chains", 2)),
                prior_sd=float(bc.get("prior_sd", 10.0)),
                random_seed=bc.get("seed", 42),
            )
        except ValueError as e:
            raise typer.BadParameter(str(e)) from e
        record = res["record"]
        res["summary"].to_csv(outp / "posterior_summary.csv")
    else:
        try:
            fitter = fit_aft(model, data, time_col, event_col, covs)
        except ValueError as e:
            raise typer.BadParameter(str(e)) from e
        record = fit_record(fitter, model, covs)
        tr = time_ratios(fitter, alpha=float(cfg.get("fit", {}).get("alpha", 0.05)))
        tr.to_csv(outp / "time_ratios.csv")
        for cov, row in tr.iterrows():
            typer.echo(f"{cov}: time ratio {row['time_ratio']:.3f} [{row['lower']:.3f}, {row['upper']:.3f}]")

    save_fit(record, outp / "fit.json")

    if groups is not None and groups.name in covs:
        implied = {}
        for grp, sub in data.groupby(groups):
            profile = {c: float(sub[c].mean()) for c in covs}
            mean, variance = implied_moments(record, profile)
            implied[str(grp)] = {"mean": mean, "variance": variance}
        save_json(implied, outp / "implied_moments.json")

    aic = record.get("AIC")
    typer.echo(f"Done. model={record['model']} n={record['n']} events={record['n_events']}" + (f" AIC={aic:.2f}" if aic is not None else ""))


@app.command()
def compare(csv: str, config: str, out: Optional[str] = None):
    """Log-rank and rank-sum comparison of the config's group column."""
    cfg = load_config(config)
    time_col, event_col, group_col = _columns(cfg)
    if not group_col:
        raise typer.BadParameter("Config must name columns.group for comparisons.")
    df = load_csv(csv)
    try:
        validate_schema(df, time_col, event_col, group_col=group_col)
        results = [logrank(df, time_col, event_col, group_col)]
        if df[group_col].nunique() == 2:
            results.append(rank_sum(df, time_col, group_col))
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e

    for res in results:
        typer.echo(f"{res['test']}: statistic={res['statistic']:.4f} p={res['p_value']:.4g}")
    if out:
        save_json({"results": results}, out)


@app.command()
def power(
    out: str,
    n_grid: str = "25,50,100,200",
    control_mean: float = 665.0,
    control_variance: float = 665.0**2,
    time_ratio: float = 1.5,
    censor_time: Optional[float] = None,
    n_sims: int = 200,
    alpha: float = 0.05,
    test: str = "logrank",
    seed: int = 42,
):
    """Simulated power across per-arm sample sizes; writes a CSV table."""
    try:
        grid = [int(x.strip()) for x in n_grid.split(",") if x.strip()]
        curve = sample_size_curve(grid, control_mean, control_variance, time_ratio, censor_time, n_sims, alpha, test, seed)
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e
    outp = Path(out)
    outp.parent.mkdir(parents=True, exist_ok=True)
    curve.to_csv(outp, index=False)
    for row in curve.itertuples(index=False):
        typer.echo(f"n_per_arm={row.n_per_arm}: power={row.power:.3f}")


@app.command("plot")
def plot(csv: str, config: str, fit: Optional[str] = None, out: str = "figs"):
    """Kaplan-Meier curves per group, with the fitted model overlaid when --fit is given."""
    from .plots import km_with_fit

    cfg = load_config(config)
    time_col, event_col, group_col = _columns(cfg)
    if not group_col:
        raise typer.BadParameter("Config must name columns.group for plotting.")
    try:
        record = load_fit(fit) if fit else None
        data, _, time_col, event_col, groups = _prep(csv, cfg)
        path = km_with_fit(data, time_col, event_col, group_col, out, record=record, groups=groups)
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e
    typer.echo(f"Saved plot to {path}")


@app.command()
def density(mean: float = typer.Option(...), variance: float = typer.Option(...), out: str = "figs"):
    """Plot the lognormal density for a natural-scale mean/variance."""
    from .plots import lognormal_density

    try:
        path = lognormal_density(mean, variance, out)
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e
    typer.echo(f"Saved plot to {path}")


if __name__ == "__main__":
    app()

"""Command-line interface for OncoSafeRx."""

import json
from pathlib import Path

import click

from oncosaferx.config import get_settings
from oncosaferx.models.ngs import NGSReport
from oncosaferx.models.patient import PatientProfile
from oncosaferx.services.dose_guidance import LabInputs, evaluate_dose_guidance
from oncosaferx.services.ngs import SORT_KEYS, NGSInterpreter, generate_sample_report
from oncosaferx.services.opioid_risk import (
    assess_opioid_risk,
    calculate_mme,
    mme_advisory,
    total_mme,
)
from oncosaferx.services.workflow import WorkflowEngine, WorkflowError
from oncosaferx.services.workflow_templates import CATEGORIES
from oncosaferx.utils.logging import setup_logging


def _load_patient(path: str | None) -> PatientProfile | None:
    if path is None:
        return None
    return PatientProfile.model_validate_json(Path(path).read_text())


@click.group()
@click.version_option(package_name="oncosaferx")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    default=None,
    help="Override the configured log level",
)
def main(log_level: str | None):
    """OncoSafeRx: oncology dosing, risk and genomics decision support."""
    setup_logging(log_level or get_settings().log_level)


@main.command("dose-check")
@click.option("-r", "--regimen", required=True, help="Template id carrying dose rules, e.g. regimen-folfox")
@click.option("--anc", help="Absolute neutrophil count (cells/µL)")
@click.option("--platelets", help="Platelet count (cells/µL)")
@click.option("--bilirubin", help="Total bilirubin (mg/dL)")
@click.option("--crcl", help="Creatinine clearance (mL/min)")
@click.option("--neuropathy", help="Neuropathy grade")
@click.option("--diarrhea", help="Diarrhea grade")
def dose_check(regimen, anc, platelets, bilirubin, crcl, neuropathy, diarrhea):
    """Check lab values against a regimen's hold thresholds."""
    try:
        template = WorkflowEngine().get_template(regimen)
    except WorkflowError as e:
        raise click.ClickException(str(e))
    if template.dose_rules is None:
        raise click.ClickException(f"Template {regimen} has no dose rules")

    values = LabInputs(
        anc=anc,
        platelets=platelets,
        bilirubin=bilirubin,
        crcl=crcl,
        neuropathy_grade=neuropathy,
        diarrhea_grade=diarrhea,
    )
    result = evaluate_dose_guidance(template.dose_rules, values)

    click.echo(f"Dose guidance for {template.name}:")
    if result.recommendations:
        for message in result.recommendations:
            click.echo(f"  ! {message}")
    else:
        click.echo("  No threshold violations.")
    if result.adjustments:
        click.echo("Protocol adjustments:")
        for adj in result.adjustments:
            click.echo(f"  - {adj.condition}: {adj.recommendation}")


@main.command("opioid-risk")
@click.option("-p", "--patient", "patient_file", type=click.Path(exists=True), help="Patient profile JSON")
@click.option("--cyp2d6-poor/--cyp2d6-normal", default=True, show_default=True, help="CYP2D6 poor metabolizer")
@click.option("--multiple-prescribers", is_flag=True, help="Patient has multiple opioid prescribers")
def opioid_risk(patient_file: str | None, cyp2d6_poor: bool, multiple_prescribers: bool):
    """Score opioid misuse risk and total daily MME."""
    patient = _load_patient(patient_file)
    assessment = assess_opioid_risk(
        patient,
        cyp2d6_poor_metabolizer=cyp2d6_poor,
        multiple_prescribers=multiple_prescribers,
    )
    tier = assessment.overall_risk.replace("_", " ")
    click.echo(f"Risk: {tier} ({assessment.risk_score}/{assessment.max_score})")
    for factor in assessment.risk_factors:
        if factor.present:
            click.echo(f"  + {factor.factor} (+{factor.weight})")
    click.echo("Recommendations:")
    for rec in assessment.recommendations:
        click.echo(f"  - {rec}")

    if patient is not None:
        calculations = calculate_mme(patient.medications)
        total = total_mme(calculations)
        click.echo(f"Total daily MME: {total:.1f}")
        advisory = mme_advisory(total)
        if advisory:
            click.echo(f"  ! {advisory}")


@main.command("ngs-summary")
@click.option("--report", "report_file", type=click.Path(exists=True), help="NGS report JSON (default: sample report)")
@click.option("--tier", default="all", show_default=True)
@click.option("--significance", default="all", show_default=True)
@click.option("--evidence-level", default="all", show_default=True)
@click.option("--min-actionability", default=0.0, show_default=True, type=float)
@click.option("--sort", "sort_by", default="actionability", show_default=True, type=click.Choice(SORT_KEYS))
@click.option("-o", "--output", type=click.Path(), help="Output file path (JSON)")
def ngs_summary(report_file, tier, significance, evidence_level, min_actionability, sort_by, output):
    """Summarise an NGS report and list matching variants."""
    if report_file:
        report = NGSReport.model_validate_json(Path(report_file).read_text())
    else:
        report = generate_sample_report()
    interpreter = NGSInterpreter(report)
    summary = interpreter.summary()

    click.echo(f"Report {summary.report_id}: {summary.variant_count} variants")
    click.echo(f"  Tier I: {summary.tier_one_count}  Pathogenic: {summary.pathogenic_count}")
    click.echo(f"  FDA-approved options: {summary.fda_approved_options}")
    click.echo(f"  TMB: {summary.tmb or 'n/a'}  MSI: {summary.msi or 'n/a'}  HRD: {summary.hrd or 'n/a'}")

    variants = interpreter.sort_variants(
        interpreter.filter_variants(tier, significance, min_actionability, evidence_level),
        sort_by,
    )
    for i, variant in enumerate(variants, 1):
        score = interpreter.actionability(variant.id)
        score_text = f"{score.overall_score:.1f}" if score else "n/a"
        click.echo(
            f"  {i}. {variant.gene} {variant.amino_acid_change} "
            f"(VAF {variant.variant_allele_frequency:.2f}, actionability {score_text})"
        )

    if output:
        Path(output).write_text(
            json.dumps(
                {
                    "summary": summary.model_dump(),
                    "variants": [v.model_dump() for v in variants],
                },
                indent=2,
            )
        )
        click.echo(f"\nResults saved to: {output}")


@main.command()
@click.option("-q", "--query", default="", help="Text to match in name, description or tags")
@click.option("-c", "--category", default="all", show_default=True, type=click.Choice(("all", *CATEGORIES)))
def workflows(query: str, category: str):
    """List built-in workflow templates."""
    templates = WorkflowEngine().filter_templates(query, category)
    if not templates:
        click.echo("No matching templates.")
        return
    for template in templates:
        click.echo(
            f"{template.id}  {template.name} [{template.category}] "
            f"{len(template.steps)} steps, ~{template.estimated_duration} min"
        )


@main.command()
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", default=8000, show_default=True, type=int)
@click.option("--reload", is_flag=True, help="Reload on code changes")
def serve(host: str, port: int, reload: bool):
    """Run the analytics API with uvicorn."""
    import uvicorn

    uvicorn.run("oncosaferx.api.main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    main()

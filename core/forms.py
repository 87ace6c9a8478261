from django import forms
from core.models import Department
from core.services.kpi_service import Period
from core.utils.dates import business_localdate


class LeadershipScoreForm(forms.Form):
    """
    Parses the reviewer's score. Range handling is left to the evaluation
    service: scores above the task's cap are lowered there, negative scores
    are rejected there.
    """
    score = forms.DecimalField(
        label='Leadership Score',
        widget=forms.NumberInput(attrs={
            'class': 'form-control',
            'step': '0.1',
            'min': '0',
            'max': '10',
        })
    )


class KpiFilterForm(forms.Form):
    """Year/month/department filter for KPI statistics."""
    year = forms.IntegerField(required=False, min_value=2000, max_value=2100)
    month = forms.IntegerField(required=False, min_value=1, max_value=12)
    department = forms.ModelChoiceField(
        queryset=Department.objects.all(),
        required=False,
        empty_label='All departments',
    )

    def get_period(self) -> Period:
        """Selected month, else selected year, else the current year."""
        year = self.cleaned_data.get('year')
        month = self.cleaned_data.get('month')
        if month and not year:
            # A month without a year means the current year
            year = business_localdate().year
        if year and month:
            return Period.for_month(year, month)
        return Period.for_year(year or business_localdate().year)

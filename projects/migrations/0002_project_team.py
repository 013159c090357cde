import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("projects", "0001_initial"),
        ("teams", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="project",
            name="team",
            field=models.ForeignKey(
                blank=True,
                help_text="The team that locked this project",
                null=True,
                on_delete=django.db.models.deletion.SET_NULL,
                related_name="won_projects",
                to="teams.team",
            ),
        ),
    ]

from django.db import migrations, models

import apps.core.models


class Migration(migrations.Migration):

    dependencies = [
        ('core', '0001_initial'),
    ]

    operations = [
        migrations.AlterField(
            model_name='settings',
            name='timezone',
            field=models.CharField(default='Asia/Kolkata', max_length=50, validators=[apps.core.models.validate_timezone]),
        ),
        migrations.AlterField(
            model_name='meallog',
            name='status',
            field=models.CharField(choices=[('CONSUMED', 'Consumed')], default='CONSUMED', max_length=10),
        ),
    ]
